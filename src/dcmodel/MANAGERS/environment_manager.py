"""
Managers for handling environment variables and .env file resolution.
"""
import logging
import os
from typing import Dict, Iterable, Mapping, Optional

from ..errors import MalformedField, Path
from ..MODELS.orchestration_config import Document
from ..MODELS.raw_string import RawString
from ..MODELS.service_definition import Service
from ..PARSERS.env_parser import EnvParser

logger = logging.getLogger(__name__)


class EnvironmentManager:
    """
    Builds the variable mapping used for interpolation from .env files and,
    on request, the current process environment. Also inlines the .env
    files services name in ``env_file``.
    """
    def __init__(self, base_dir: str = "."):
        """
        Initializes the environment manager.

        :param base_dir: The base directory for resolving relative paths to .env files.
        """
        self.base_dir = base_dir
        self.parser = EnvParser()

    def get_variables(self,
                      env_files: Iterable[str] = (),
                      include_os_environ: bool = True,
                      overrides: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        """
        Merges variables from .env files, the process environment and
        explicit definitions.

        :param env_files: Paths to .env files; later files override earlier ones.
        :param include_os_environ: Let the process environment override file values.
        :param overrides: Explicit values that override everything.
        :return: A dictionary containing the merged variables.
        """
        variables: Dict[str, str] = {}

        # 1. Load from env files (later files override earlier ones)
        for env_file in env_files:
            file_path = os.path.join(self.base_dir, env_file)
            if os.path.exists(file_path):
                variables.update(self.parser.parse(file_path))
                logger.debug("Loaded variables from %s", file_path)
            else:
                logger.warning("Env file %s not found, skipping", file_path)

        # 2. The shell environment takes precedence over files
        if include_os_environ:
            variables.update(os.environ)

        # 3. Explicit variables override everything
        if overrides:
            variables.update(overrides)

        return variables

    def inline_env_files(self, document: Document) -> Document:
        """
        Copies the variables of every service's ``env_file`` entries into its
        ``environment`` and drops the ``env_file`` key.

        Later files override earlier ones and keys set in ``environment``
        override them all. Resolve the document first when the paths use
        variables.

        :param document: The document to rewrite. It is not modified.
        :return: A new document that no longer depends on .env files.
        :raises MalformedField: If a path still references a variable.
        :raises OSError: If an env file cannot be read.
        """
        root: Path = () if document.is_legacy else ("services",)
        services = {
            name: self._inline_service(service, root + (name, "env_file"))
            for name, service in document.services.items()
        }
        return document.model_copy(update={"services": services})

    def _inline_service(self, service: Service, path: Path) -> Service:
        if service.env_file is None:
            return service
        environment: Dict[str, Optional[RawString]] = {}
        for i, raw in enumerate(service.env_file):
            if not raw.is_literal:
                raise MalformedField(path + (i,), "a path without variable references", raw.text)
            file_path = os.path.join(self.base_dir, raw.unescape())
            values = self.parser.parse(file_path)
            logger.debug("Inlining %d variable(s) from %s", len(values), file_path)
            environment.update((key, RawString.literal(value)) for key, value in values.items())
        environment.update(service.environment)
        return service.model_copy(update={"environment": environment, "env_file": None})
