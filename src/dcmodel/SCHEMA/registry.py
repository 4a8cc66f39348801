"""
Registered schema rulesets, one per supported compose file version.

The registry is built once at import time and is read-only afterwards.
Supporting a new version means adding a ruleset here; existing rulesets
are never modified.
"""
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, FrozenSet, List, Mapping, Optional

from ..errors import ValidationError
from ..MODELS.node_tree import MappingNode, Node
from ..MODELS.orchestration_config import SERVICE_NAME_PATTERN
from .rules import (
    FieldRule,
    key_value,
    mapping,
    mutually_exclusive,
    one_of,
    requires_any,
    scalar,
    sequence,
    string_or_list,
)
from .validator import SchemaValidator

LEGACY_VERSION = "1"

RESTART_PATTERN = r"^(no|always|unless-stopped|on-failure(:[0-9]+)?)$"
PROTOCOLS = ("tcp", "udp", "sctp")
VOLUME_TYPES = ("bind", "volume", "tmpfs", "npipe")


@dataclass(frozen=True)
class SchemaRuleset:
    """
    The validation rules for one compose file version.

    :param version: The version identifier, as written in ``version:``.
    :param document: Rule for the document root.
    :param service: Rule for a single service definition.
    :param legacy: Whether services live at the root (version 1).
    """
    version: str
    document: FieldRule
    service: FieldRule
    legacy: bool = False

    @property
    def service_fields(self) -> FrozenSet[str]:
        """Service keys this version knows about."""
        return frozenset(self.service.fields or ())

    def services_node(self, tree: Node) -> Optional[MappingNode]:
        """Locates the mapping of service definitions in a tree."""
        if not isinstance(tree, MappingNode):
            return None
        if self.legacy:
            return tree
        services = tree.get("services")
        return services if isinstance(services, MappingNode) else None

    def validate(self, tree: Node, strict_unknown_keys: bool = False) -> List[ValidationError]:
        """
        Validates a tree against this ruleset.

        :return: Every violation found; empty when the tree is accepted.
        """
        return SchemaValidator(self, strict_unknown_keys).validate(tree)


def _port_rule(long_syntax: bool) -> FieldRule:
    short = scalar()
    if not long_syntax:
        return sequence(short)
    long = mapping(
        {
            "target": scalar(),
            "published": scalar(),
            "host_ip": scalar(),
            "protocol": scalar(PROTOCOLS),
            "mode": scalar(("host", "ingress")),
        },
        required=("target",),
    )
    return sequence(one_of(short, long))


def _volume_rule(long_syntax: bool) -> FieldRule:
    short = scalar()
    if not long_syntax:
        return sequence(short)
    long = mapping(
        {
            "type": scalar(VOLUME_TYPES),
            "source": scalar(),
            "target": scalar(),
            "read_only": scalar(),
            "consistency": scalar(),
            "bind": mapping(),
            "volume": mapping(),
            "tmpfs": mapping(),
        },
        required=("type", "target"),
    )
    return sequence(one_of(short, long))


def _depends_on_rule(conditions: Optional[List[str]]) -> FieldRule:
    short = sequence(scalar())
    if conditions is None:
        return short
    long = mapping(values=mapping({"condition": scalar(conditions)}, required=("condition",)))
    return one_of(short, long)


def _build_rule(long_syntax: bool) -> FieldRule:
    if not long_syntax:
        return scalar()
    return one_of(
        scalar(),
        mapping(
            {
                "context": scalar(),
                "dockerfile": scalar(),
                "args": key_value(),
                "target": scalar(),
                "labels": key_value(nullable_values=False),
                "cache_from": sequence(),
                "network": scalar(),
                "shm_size": scalar(),
            },
            required=("context",),
        ),
    )


def _service_rule(version: str) -> FieldRule:
    major, _, minor_text = version.partition(".")
    minor = int(minor_text or 0)
    legacy = major == "1"
    v2 = major == "2"
    v3 = major == "3"

    fields: Dict[str, FieldRule] = {
        "image": scalar(),
        "build": _build_rule(long_syntax=not legacy),
        "command": string_or_list(),
        "entrypoint": string_or_list(),
        "working_dir": scalar(),
        "user": scalar(),
        "environment": key_value(),
        "env_file": string_or_list(),
        "ports": _port_rule(long_syntax=v3 and minor >= 2),
        "expose": sequence(),
        "links": sequence(),
        "external_links": sequence(),
        "extra_hosts": key_value(nullable_values=False),
        "dns": string_or_list(),
        "dns_search": string_or_list(),
        "hostname": scalar(),
        "container_name": scalar(),
        "volumes": _volume_rule(long_syntax=(v2 and minor >= 3) or (v3 and minor >= 2)),
        "restart": scalar(pattern=RESTART_PATTERN),
        "labels": key_value(nullable_values=False),
        "cap_add": sequence(),
        "cap_drop": sequence(),
        "privileged": scalar(),
        "stdin_open": scalar(),
        "tty": scalar(),
    }
    constraints = [requires_any("image", "build")]

    if legacy:
        fields["net"] = scalar()
        fields["dockerfile"] = scalar()
        fields["volumes_from"] = sequence()
        fields["extends"] = one_of(scalar(), mapping({"service": scalar(), "file": scalar()}, required=("service",)))
    else:
        fields["network_mode"] = scalar()
        fields["networks"] = one_of(
            sequence(),
            mapping(values=mapping(
                {
                    "aliases": sequence(),
                    "ipv4_address": scalar(),
                    "ipv6_address": scalar(),
                },
                nullable=True,
            )),
        )
        fields["tmpfs"] = string_or_list()
        fields["healthcheck"] = mapping({
            "test": string_or_list(),
            "interval": scalar(),
            "timeout": scalar(),
            "retries": scalar(),
            "start_period": scalar(),
            "disable": scalar(),
        })
        fields["logging"] = mapping({"driver": scalar(), "options": mapping(values=scalar(nullable=True))})
        fields["ulimits"] = mapping()
        fields["depends_on"] = _depends_on_rule(
            ["service_started", "service_healthy"] if v2 and minor >= 1 else None
        )
        constraints.append(mutually_exclusive("network_mode", "networks"))

    if v2:
        fields["extends"] = one_of(scalar(), mapping({"service": scalar(), "file": scalar()}, required=("service",)))
        fields["volumes_from"] = sequence()
        fields["mem_limit"] = scalar()
        fields["cpu_shares"] = scalar()
    if v3:
        fields["deploy"] = mapping()
        if minor >= 1:
            fields["secrets"] = sequence(one_of(scalar(), mapping({"source": scalar()}, required=("source",))))
        if minor >= 3:
            fields["configs"] = sequence(one_of(scalar(), mapping({"source": scalar()}, required=("source",))))

    return mapping(fields, constraints=constraints)


def _document_rule(version: str, service: FieldRule) -> FieldRule:
    major, _, minor_text = version.partition(".")
    minor = int(minor_text or 0)
    services = mapping(values=service, key_pattern=SERVICE_NAME_PATTERN.pattern)
    if major == LEGACY_VERSION:
        return services

    declarations = mapping(values=mapping(nullable=True))
    fields = {
        "version": scalar(),
        "services": services,
        "volumes": declarations,
        "networks": declarations,
    }
    if major == "3" and minor >= 1:
        fields["secrets"] = declarations
    if major == "3" and minor >= 3:
        fields["configs"] = declarations
    return mapping(fields, required=("services",))


def _ruleset(version: str) -> SchemaRuleset:
    canonical = version if "." in version or version == LEGACY_VERSION else f"{version}.0"
    service = _service_rule(canonical)
    return SchemaRuleset(
        version=version,
        document=_document_rule(canonical, service),
        service=service,
        legacy=version == LEGACY_VERSION,
    )


_VERSIONS = [
    LEGACY_VERSION,
    "2", "2.0", "2.1", "2.2", "2.3", "2.4",
    "3", "3.0", "3.1", "3.2", "3.3", "3.4", "3.5", "3.6", "3.7", "3.8",
]

REGISTRY: Mapping[str, SchemaRuleset] = MappingProxyType({v: _ruleset(v) for v in _VERSIONS})


def known_versions() -> List[str]:
    """Registered version identifiers, oldest first."""
    return list(REGISTRY)


def get_ruleset(version: str) -> Optional[SchemaRuleset]:
    return REGISTRY.get(version)
