from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

Units = Literal["px", "in"]

# Canva print presets assume 300 pixels per inch.
PIXELS_PER_INCH = 300


@dataclass(frozen=True, slots=True)
class DesignSpec:
    name: str
    width: float
    height: float
    units: Units = "px"
    sides: int | None = None
    colors: tuple[str, ...] = field(default_factory=tuple)
    style: str | None = None
    notes: str | None = None

    def pixel_size(self) -> tuple[int, int]:
        scale = PIXELS_PER_INCH if self.units == "in" else 1
        return round(self.width * scale), round(self.height * scale)

    def description(self) -> str:
        parts: list[str] = []
        if self.style:
            parts.append(f"Style: {self.style}")
        if self.sides is not None:
            parts.append(f"Sides: {self.sides}")
        if self.colors:
            parts.append(f"Colors: {', '.join(self.colors)}")
        if self.notes:
            parts.append(f"Notes: {self.notes}")
        return " | ".join(parts)


@dataclass(frozen=True, slots=True)
class DesignResult:
    design_id: str
    url: str
    view_url: str | None = None
    edit_url: str | None = None
    description: str = ""
