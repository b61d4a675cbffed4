"""Reference baseline settings for o3plot."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from o3plot.plot_config.conventions import DEFAULT_REF_MODEL, DEFAULT_REF_YEAR


@dataclass
class ReferenceSettings:
    """Reference model/year pair other series may be shown relative to.

    Attributes:
        model: Reference model id.
        year: Reference year.
        visible: Draw the reference line.
        is_offset_applied: Show series as difference to the reference value.
    """
    model: str = DEFAULT_REF_MODEL
    year: int = DEFAULT_REF_YEAR
    visible: bool = True
    is_offset_applied: bool = False

    @property
    def label(self) -> str:
        return f"Reference: {self.model} ({self.year})"

    def to_dict(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "model": self.model,
            "visible": self.visible,
            "isOffsetApplied": self.is_offset_applied,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReferenceSettings":
        try:
            year = int(data.get("year", DEFAULT_REF_YEAR))
        except (TypeError, ValueError):
            year = DEFAULT_REF_YEAR
        return cls(
            model=str(data.get("model", DEFAULT_REF_MODEL)),
            year=year,
            visible=bool(data.get("visible", True)),
            is_offset_applied=bool(data.get("isOffsetApplied", False)),
        )
