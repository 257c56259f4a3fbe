"""
Reassembly Templates - Placeholder substitution for responses
=============================================================

Templates refer to the decomposition pattern's capture groups with
numbered placeholders:

    "How long have you been {1}?"

A template starting with MEMORY_PREFIX is a memory directive: its
remainder is filled and stored for a later turn instead of being
returned.
"""

import re
from dataclasses import dataclass
from typing import Callable, Optional

MEMORY_PREFIX = "@memory:"

_PLACEHOLDER = re.compile(r"\{(\d+)\}")


def is_memory_directive(template: str) -> bool:
    """Whether a template stores a memory instead of replying."""
    return template.startswith(MEMORY_PREFIX)


@dataclass(frozen=True)
class Template:
    """
    A parsed reassembly template.

    Attributes:
        content (str): Template text without the memory prefix
        memory (bool): Whether the filled text goes to memory
    """
    content: str
    memory: bool = False

    @classmethod
    def parse(cls, raw: str) -> "Template":
        if is_memory_directive(raw):
            return cls(raw[len(MEMORY_PREFIX):], memory=True)
        return cls(raw)

    def render(
        self,
        match: Optional[re.Match],
        reflect: Callable[[str], str] = lambda text: text
    ) -> str:
        """
        Fill placeholders from a regex match.

        Each referenced group is trimmed and reflected. A placeholder
        whose group does not exist, or did not participate in the
        match, becomes an empty string.

        Args:
            match: Match of the decomposition pattern (or None)
            reflect: Reflection applied to each captured group

        Returns:
            Filled response
        """
        group_count = len(match.groups()) if match is not None else 0

        def replace(placeholder: re.Match) -> str:
            index = int(placeholder.group(1))
            if index < 1 or index > group_count:
                return ""
            captured = match.group(index)
            if captured is None:
                return ""
            return reflect(captured.strip())

        return _PLACEHOLDER.sub(replace, self.content)


def fill_template(
    template: str,
    match: Optional[re.Match],
    reflect: Callable[[str], str] = lambda text: text
) -> str:
    """Fill a raw template string; see Template.render."""
    return Template(template).render(match, reflect)
