# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Parsers for Docker Compose YAML files.
"""
import logging
from typing import Iterable, List, Optional

from ..CODECS.document_codec import decode_document
from ..errors import ValidationError, ValidationFailed
from ..MANAGERS.interpolation_engine import InterpolationEngine
from ..MANAGERS.merge_engine import MergeEngine
from ..MODELS.node_tree import Node
from ..MODELS.orchestration_config import Document
from ..MODELS.parser_options import ParserOptions
from ..SCHEMA.validator import check_image_sources
from ..SCHEMA.version_detector import VersionDetector
from .yaml_loader import YamlLoader

logger = logging.getLogger(__name__)

# checked on the merged document instead of on each override layer
LAYER_DEFERRED_RULES = frozenset({"required-one-of"})


class ComposeParser:
    """
    Parser for docker-compose.yml files.

    Runs the full pipeline: version detection, schema validation, decoding
    into a Document and, when enabled, variable interpolation.
    """
    def __init__(self, options: Optional[ParserOptions] = None):
        """
        Initializes the parser.

        :param options: Parsing configuration; defaults to ParserOptions().
        """
        self.options = options or ParserOptions()
        self.loader = YamlLoader()
        self.detector = VersionDetector()

    def parse(self, compose_path: str, layer: bool = False) -> Document:
        """
        Parses a docker-compose.yml file.

        :param compose_path: Path to the docker-compose.yml file.
        :param layer: The file is an override layer; see parse_node_tree.
        :return: The decoded document.
        :raises ParseError: If the file is not valid YAML.
        :raises ValidationFailed: If the document violates its version's schema.
        """
        logger.info("Loading %s", compose_path)
        return self.parse_node_tree(self.loader.load_file(compose_path), layer)

    def parse_from_string(self, content: str) -> Document:
        """
        Parses docker-compose content from a string.

        :param content: YAML or JSON text.
        :return: The decoded document.
        """
        return self.parse_node_tree(self.loader.load(content))

    def validate(self, tree: Node, layer: bool = False) -> List[ValidationError]:
        """
        Validates a tree without decoding it.

        :return: Every violation found.
        :raises UnsupportedVersion: If the version is not registered.
        """
        detected = self.detector.detect(tree)
        errors = detected.ruleset.validate(tree, self.options.strict_unknown_keys)
        if layer:
            errors = [error for error in errors if error.rule not in LAYER_DEFERRED_RULES]
        return errors

    def parse_node_tree(self, tree: Node, layer: bool = False) -> Document:
        """
        Decodes an already loaded tree.

        :param tree: Root node of the document.
        :param layer: The tree is an override layer, whose services need
            not name an image or build.
        :return: The decoded document.
        """
        detected = self.detector.detect(tree)
        errors = self.validate(tree, layer)
        if errors:
            raise ValidationFailed(errors)

        document = decode_document(tree, detected.ruleset)
        if self.options.interpolate:
            engine = InterpolationEngine(self.options.variables, self.options.interpolation_mode)
            document = engine.resolve_document(document)
        return document

    def parse_many(self, compose_paths: Iterable[str]) -> Document:
        """
        Parses several files and merges them, the first being the base.

        :param compose_paths: Paths of the base file and its overrides.
        :return: The merged document.
        :raises ValueError: If no path is given.
        :raises ValidationFailed: If a merged service has neither image nor build.
        """
        documents = [self.parse(path, layer=i > 0) for i, path in enumerate(compose_paths)]
        merged = MergeEngine().merge(documents)
        errors = check_image_sources(merged)
        if errors:
            raise ValidationFailed(errors)
        return merged
