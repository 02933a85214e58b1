from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .enums import OutputFormat


@dataclass(frozen=True)
class BackgroundInfo:
    width_px: int
    height_px: int


@dataclass(frozen=True)
class LogoProbe:
    """Logo size when rasterized at the reference density."""
    reference_width_px: int
    reference_height_px: int


@dataclass(frozen=True)
class ExactDensity:
    """Rasterize at a density that lands on the target width directly."""
    density: int


@dataclass(frozen=True)
class ResizeFallback:
    """Rasterize at a fixed density, then resize to target_width_px."""
    density: int
    target_width_px: int


LogoSizing = Union[ExactDensity, ResizeFallback]


@dataclass(frozen=True)
class RenderRequest:
    background_path: Path
    logo_path: Path
    target_width_px: int
    sizing: LogoSizing
    anchor: str
    margin_px: int
    output_path: Path
    output_format: OutputFormat

    @property
    def density_to_use(self) -> int:
        return self.sizing.density

    @property
    def use_resize_fallback(self) -> bool:
        return isinstance(self.sizing, ResizeFallback)


# ---------------------------- per-file results ----------------------------
@dataclass(frozen=True)
class FileSucceeded:
    source: Path
    output_path: Path
    logo_width_px: int
    logo_height_px: Optional[int]  # unknown on the fallback path with a fixed margin
    margin_px: int
    anchor: str
    output_format: OutputFormat
    used_fallback: bool


@dataclass(frozen=True)
class FileSkipped:
    source: Path
    stage: str
    reason: str


FileResult = Union[FileSucceeded, FileSkipped]
