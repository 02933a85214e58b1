from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from logostamp.errors import InvalidInput
from .enums import BaseDimension, OutputFormat, Placement

DEFAULT_PERCENT = 0.12
DEFAULT_MARGIN_RATIO = 0.25
DEFAULT_FALLBACK_DENSITY = 300
DEFAULT_TIMEOUT = 120.0

MIN_FALLBACK_DENSITY = 72
MAX_FALLBACK_DENSITY = 1200
MAX_MARGIN_RATIO = 2.0


@dataclass(frozen=True)
class SizingPolicy:
    percent_of_size: float = DEFAULT_PERCENT
    base_dimension: BaseDimension = BaseDimension.WIDTH

    def __post_init__(self) -> None:
        if not 0 < self.percent_of_size <= 1:
            raise InvalidInput(
                f"percent_of_size must be in (0, 1], got {self.percent_of_size}"
            )


@dataclass(frozen=True)
class MarginPolicy:
    # margin_px >= 0 is a fixed margin; negative means "use margin_height_ratio"
    margin_px: int = -1
    margin_height_ratio: float = DEFAULT_MARGIN_RATIO

    def __post_init__(self) -> None:
        if not 0 <= self.margin_height_ratio <= MAX_MARGIN_RATIO:
            raise InvalidInput(
                f"margin_height_ratio must be in [0, {MAX_MARGIN_RATIO}], "
                f"got {self.margin_height_ratio}"
            )

    @property
    def uses_ratio(self) -> bool:
        return self.margin_px < 0


@dataclass(frozen=True)
class RunSettings:
    input_dir: Path
    logo_path: Path
    output_dir: Path
    sizing: SizingPolicy = SizingPolicy()
    margin: MarginPolicy = MarginPolicy()
    placement: Placement = Placement.TOP_RIGHT
    output_format: OutputFormat = OutputFormat.PNG
    fallback_density: int = DEFAULT_FALLBACK_DENSITY
    recurse: bool = False
    magick_path: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT
    strict: bool = False

    def __post_init__(self) -> None:
        if not MIN_FALLBACK_DENSITY <= self.fallback_density <= MAX_FALLBACK_DENSITY:
            raise InvalidInput(
                f"fallback_density must be in [{MIN_FALLBACK_DENSITY}, "
                f"{MAX_FALLBACK_DENSITY}], got {self.fallback_density}"
            )
        if self.timeout <= 0:
            raise InvalidInput(f"timeout must be positive, got {self.timeout}")
