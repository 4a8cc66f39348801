"""
Parsers for .env files, supporting quotes and comments.
"""
import io
from typing import Dict

from dotenv import dotenv_values


class EnvParser:
    """
    Parser for .env files.

    Values are taken literally: references inside a .env file are not
    expanded, and keys without a value are dropped.
    """
    @staticmethod
    def parse(env_path: str) -> Dict[str, str]:
        """
        Parses an .env file from a path.

        Args:
            env_path (str): Path to the .env file.

        Returns:
            Dict[str, str]: Dictionary of environment variables.
        """
        with open(env_path, 'r', encoding='utf-8') as f:
            content = f.read()
        return EnvParser.parse_from_string(content)

    @staticmethod
    def parse_from_string(content: str) -> Dict[str, str]:
        """
        Parses environment variables from a string.
        Handles quotes, comments, ``export`` prefixes and escaped characters.
        """
        values = dotenv_values(stream=io.StringIO(content), interpolate=False)
        return {key: value for key, value in values.items() if value is not None}
