"""
Converters for writing NodeTrees as YAML or JSON text.
"""
import json

import yaml

from ..MODELS.node_tree import Node, to_python

FORMATS = ("yaml", "json")


class TextConverter:
    """
    Renders a NodeTree as text.
    """
    def __init__(self, output_format: str = "yaml"):
        """
        Initializes the converter.

        :param output_format: ``yaml`` or ``json``.
        """
        if output_format not in FORMATS:
            raise ValueError(f"unknown output format {output_format!r}")
        self.output_format = output_format

    def convert(self, node: Node) -> str:
        if self.output_format == "json":
            return to_json(node)
        return to_yaml(node)

    def write(self, node: Node, output_path: str) -> None:
        """
        Writes the rendered text to a file.

        :param node: The tree to render.
        :param output_path: Destination file.
        """
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(self.convert(node))


def to_yaml(node: Node) -> str:
    """YAML text with keys in tree order."""
    return yaml.safe_dump(to_python(node), sort_keys=False, default_flow_style=False, allow_unicode=True)


def to_json(node: Node, indent: int = 2) -> str:
    return json.dumps(to_python(node), indent=indent, ensure_ascii=False) + "\n"
