"""Structured score breakdowns for diagnostics."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Explanation:
    """A value, what produced it and the values it was computed from."""

    value: float
    description: str
    details: tuple[Explanation, ...] = ()

    @classmethod
    def of(cls, value: float, description: str, *details: Explanation) -> Explanation:
        return cls(value, description, tuple(details))

    def to_dict(self) -> dict[str, Any]:
        return {
            "value": self.value,
            "description": self.description,
            "details": [detail.to_dict() for detail in self.details],
        }

    def render(self, depth: int = 0) -> str:
        lines = [f"{'  ' * depth}{self.value} = {self.description}"]
        lines.extend(detail.render(depth + 1) for detail in self.details)
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.render()
