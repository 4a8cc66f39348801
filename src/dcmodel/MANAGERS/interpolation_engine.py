"""
Resolves variable references throughout a decoded Document.
"""
import logging
from typing import Any, Dict, List, Mapping, Optional

from ..CODECS.image import parse_image
from ..CODECS.ports import decode_port, parse_port_mapping
from ..CODECS.volumes import decode_volume, parse_volume_mount
from ..errors import Path
from ..MODELS.node_tree import MappingNode, Node, ScalarNode, SequenceNode
from ..MODELS.orchestration_config import Document
from ..MODELS.raw_string import RawString
from ..MODELS.service_definition import BuildSpec, NetworkAttachment, Service, ServiceDependency
from ..UTILS.string_interpolation import InterpolationMode, escape

logger = logging.getLogger(__name__)


class InterpolationEngine:
    """
    Substitutes variables in every RawString of a document.

    The engine reads only the mapping it is given. Resolved text is stored
    escaped, so the result is a Document whose strings are all literal;
    typed fields that held a RawString are parsed once their text is known.
    """
    def __init__(self, variables: Optional[Mapping[str, str]] = None,
                 mode: InterpolationMode = InterpolationMode.LENIENT):
        """
        Initializes the engine.

        :param variables: Variable values, e.g. from EnvironmentManager.get_variables.
        :param mode: LENIENT substitutes "" for unset variables, STRICT raises.
        """
        self.variables = dict(variables or {})
        self.mode = mode

    def resolve(self, raw: RawString, path: Path = ()) -> str:
        """
        Resolves one string.

        :return: The fully substituted text.
        :raises UndefinedVariable: In STRICT mode, or for ``:?``/``?`` references.
        """
        return raw.resolve(self.variables, self.mode, path)

    def resolve_document(self, document: Document) -> Document:
        """
        Returns a copy of ``document`` with every reference substituted.

        :raises UndefinedVariable: If a required variable is missing.
        :raises MalformedField: If a substituted value is not valid for its field.
        """
        root: Path = () if document.is_legacy else ("services",)
        services = {
            name: self._service(service, root + (name,))
            for name, service in document.services.items()
        }
        logger.debug("Resolved variables in %d service(s)", len(services))
        return document.model_copy(update={
            "services": services,
            "volumes": self._nodes(document.volumes),
            "networks": self._nodes(document.networks),
            "extras": self._nodes(document.extras),
        })

    def resolve_node(self, node: Node) -> Node:
        """Resolves every string scalar of a passthrough tree."""
        if isinstance(node, ScalarNode):
            if isinstance(node.value, str):
                text = RawString.parse(node.value, node.path).resolve(self.variables, self.mode, node.path)
                return ScalarNode(escape(text), node.path, node.mark)
            return node
        if isinstance(node, SequenceNode):
            return SequenceNode([self.resolve_node(item) for item in node], node.path, node.mark)
        if isinstance(node, MappingNode):
            return MappingNode([(key, self.resolve_node(child)) for key, child in node.items()],
                               node.path, node.mark)
        return node

    def _literal(self, raw: Optional[RawString], path: Path) -> Optional[RawString]:
        if raw is None or raw.is_literal:
            return raw
        return RawString.literal(self.resolve(raw, path))

    def _literals(self, values: Optional[List[RawString]], path: Path) -> Optional[List[RawString]]:
        if values is None:
            return None
        return [self._literal(value, path + (i,)) for i, value in enumerate(values)]

    def _mapping(self, values: Mapping[str, Optional[RawString]], path: Path) -> Dict[str, Optional[RawString]]:
        return {key: self._literal(value, path + (key,)) for key, value in values.items()}

    def _nodes(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        return {key: self.resolve_node(node) for key, node in values.items()}

    def _typed(self, value: Any, path: Path, parse, decode_long) -> Any:
        if isinstance(value, RawString):
            return parse(self.resolve(value, path), path)
        if isinstance(value, MappingNode):
            return decode_long(self.resolve_node(value))
        return value

    def _items(self, values: Optional[List[Any]], path: Path, parse, decode_long) -> Optional[List[Any]]:
        if values is None:
            return None
        return [self._typed(value, path + (i,), parse, decode_long) for i, value in enumerate(values)]

    def _command(self, value, path: Path):
        if isinstance(value, list):
            return self._literals(value, path)
        return self._literal(value, path)

    def _build(self, build: Optional[BuildSpec], path: Path) -> Optional[BuildSpec]:
        if build is None:
            return None
        return BuildSpec(
            context=self._literal(build.context, path + ("context",)),
            dockerfile=self._literal(build.dockerfile, path + ("dockerfile",)),
            args=self._mapping(build.args, path + ("args",)),
            extras=self._nodes(build.extras),
        )

    def _service(self, service: Service, path: Path) -> Service:
        image = service.image
        if isinstance(image, RawString):
            image = parse_image(self.resolve(image, path + ("image",)), path + ("image",))

        networks = {
            name: NetworkAttachment(
                aliases=self._literals(attachment.aliases, path + ("networks", name, "aliases")),
                ipv4_address=self._literal(attachment.ipv4_address, path + ("networks", name, "ipv4_address")),
                ipv6_address=self._literal(attachment.ipv6_address, path + ("networks", name, "ipv6_address")),
                extras=self._nodes(attachment.extras),
            )
            for name, attachment in service.networks.items()
        }
        depends_on = {
            name: ServiceDependency(condition=dependency.condition,
                                    extras=self._nodes(dependency.extras))
            for name, dependency in service.depends_on.items()
        }

        return Service(
            image=image,
            build=self._build(service.build, path + ("build",)),
            command=self._command(service.command, path + ("command",)),
            entrypoint=self._command(service.entrypoint, path + ("entrypoint",)),
            working_dir=self._literal(service.working_dir, path + ("working_dir",)),
            user=self._literal(service.user, path + ("user",)),
            environment=self._mapping(service.environment, path + ("environment",)),
            env_file=self._literals(service.env_file, path + ("env_file",)),
            ports=self._items(service.ports, path + ("ports",), parse_port_mapping, decode_port),
            expose=self._literals(service.expose, path + ("expose",)),
            networks=networks,
            network_mode=self._literal(service.network_mode, path + ("network_mode",)),
            links=self._literals(service.links, path + ("links",)),
            dns=self._literals(service.dns, path + ("dns",)),
            dns_search=self._literals(service.dns_search, path + ("dns_search",)),
            hostname=self._literal(service.hostname, path + ("hostname",)),
            container_name=self._literal(service.container_name, path + ("container_name",)),
            volumes=self._items(service.volumes, path + ("volumes",), parse_volume_mount, decode_volume),
            tmpfs=self._literals(service.tmpfs, path + ("tmpfs",)),
            restart=self._literal(service.restart, path + ("restart",)),
            depends_on=depends_on,
            cap_add=self._literals(service.cap_add, path + ("cap_add",)),
            cap_drop=self._literals(service.cap_drop, path + ("cap_drop",)),
            labels=self._mapping(service.labels, path + ("labels",)),
            extras=self._nodes(service.extras),
        )
