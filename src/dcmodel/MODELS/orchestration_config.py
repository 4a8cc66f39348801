"""
Models for the overall compose document.
"""
import re
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, field_validator

from .service_definition import Service

SERVICE_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9_.-]*$")


class Document(BaseModel):
    """
    Complete configuration for a multi-service stack.
    Equivalent to a parsed docker-compose.yml file.

    ``volumes`` and ``networks`` map declared names to their NodeTree
    definition (a null scalar for an empty declaration). ``extras`` keeps the
    remaining top-level keys (``secrets``, ``configs``, ``x-*``, ...).
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    version: str
    services: Dict[str, Service] = {}
    volumes: Dict[str, Any] = {}
    networks: Dict[str, Any] = {}
    extras: Dict[str, Any] = {}

    @field_validator("version")
    @classmethod
    def _registered_version(cls, version: str) -> str:
        from ..SCHEMA.registry import REGISTRY

        if version not in REGISTRY:
            raise ValueError(f"unsupported compose file version {version!r}")
        return version

    @field_validator("services")
    @classmethod
    def _service_names(cls, services: Dict[str, Service]) -> Dict[str, Service]:
        for name in services:
            if not SERVICE_NAME_PATTERN.match(name):
                raise ValueError(f"invalid service name {name!r}")
        return services

    @property
    def is_legacy(self) -> bool:
        """True for version 1 files, which keep services at the root."""
        return self.version == "1"
