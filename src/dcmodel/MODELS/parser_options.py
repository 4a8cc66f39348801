"""
Options controlling how compose documents are loaded.
"""
from typing import Dict

from pydantic import BaseModel, ConfigDict

from ..UTILS.string_interpolation import InterpolationMode


class ParserOptions(BaseModel):
    """
    Configuration for ComposeParser.

    The parser never reads the process environment; ``variables`` is the
    only source of values for interpolation.
    """
    model_config = ConfigDict(frozen=True)

    strict_unknown_keys: bool = False
    interpolate: bool = False
    interpolation_mode: InterpolationMode = InterpolationMode.LENIENT
    variables: Dict[str, str] = {}
