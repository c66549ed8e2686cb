"""Label value objects.

Labels are read fresh from a file or from GitHub on every run and are never
mutated in place. Colors are stored in canonical form (no leading ``#``,
lower-case) so that both sides of a comparison agree.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


def normalize_color(color: str) -> str:
    """Return ``color`` without surrounding whitespace or a leading ``#``, lower-cased."""

    value = color.strip()
    if value.startswith("#"):
        value = value[1:]
    return value.lower()


@dataclass(frozen=True, slots=True)
class Label:
    name: str
    color: str
    description: str = ""

    def __post_init__(self) -> None:
        # Frozen dataclass: write through object.__setattr__.
        object.__setattr__(self, "color", normalize_color(self.color))
        if self.description is None:
            object.__setattr__(self, "description", "")

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Label:
        """Build a label from a GitHub REST payload."""

        name = data.get("name")
        if not isinstance(name, str) or not name:
            raise ValueError("Unexpected label payload: missing name")
        color = data.get("color")
        description = data.get("description")
        return cls(
            name=name,
            color=color if isinstance(color, str) else "",
            description=description if isinstance(description, str) else "",
        )

    def to_json(self) -> dict[str, str]:
        return {"name": self.name, "color": self.color, "description": self.description}
