"""
Base prompt class for extraction prompts.

A prompt is assembled from an instruction, a list of field descriptions and
one worked example rendered as JSON.
"""

import json
from typing import Any, Dict, List


class BasePrompt:
    """
    Base class for prompt templates with common formatting helpers.
    """

    def __init__(self, version: str = "1.0"):
        """
        Initialize a base prompt template.

        Args:
            version: Version identifier for the prompt template
        """
        self.version = version

    def build_prompt(self, *args: Any, **kwargs: Any) -> str:
        raise NotImplementedError

    @staticmethod
    def format_fields(fields: List[str], indent: str = "  ") -> str:
        """Render a ``Fields:`` block with one bullet per field"""
        lines = ["Fields:"]
        lines.extend(f"{indent}- {field}" for field in fields)
        return "\n".join(lines)

    @staticmethod
    def format_example(example: Dict[str, Any]) -> str:
        """
        Format a worked example for inclusion in the prompt.

        Args:
            example: Example data dictionary, rendered in insertion order

        Returns:
            str: The example as indented JSON
        """
        return json.dumps(example, indent=2, ensure_ascii=False)

    @staticmethod
    def join_choices(choices: List[str], separator: str = " / ") -> str:
        return separator.join(choices)
