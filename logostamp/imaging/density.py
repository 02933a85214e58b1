# logostamp/imaging/density.py
# Two-pass vector sizing: the logo is probed at REFERENCE_DENSITY, then the
# density that renders it natively at the target width is derived from the
# probe. Without a usable probe, a fixed density plus a bitmap resize is used.

from __future__ import annotations
from typing import Optional, Tuple

from logostamp.models.requests import ExactDensity, LogoProbe, LogoSizing, ResizeFallback
from logostamp.models.settings import DEFAULT_FALLBACK_DENSITY

REFERENCE_DENSITY = 72


def resolve_density(
    reference_width_px: Optional[int],
    target_width_px: int,
    reference_density: int = REFERENCE_DENSITY,
    fallback_density: int = DEFAULT_FALLBACK_DENSITY,
) -> Tuple[int, bool]:
    """Return (density, use_fallback)."""
    if reference_width_px is None or reference_width_px <= 0:
        return fallback_density, True
    density = max(1, round(reference_density * target_width_px / reference_width_px))
    return density, False


def resolve_sizing(
    probe: Optional[LogoProbe],
    target_width_px: int,
    fallback_density: int = DEFAULT_FALLBACK_DENSITY,
    reference_density: int = REFERENCE_DENSITY,
) -> LogoSizing:
    ref_w = probe.reference_width_px if probe is not None else None
    density, use_fallback = resolve_density(
        ref_w, target_width_px,
        reference_density=reference_density,
        fallback_density=fallback_density,
    )
    if use_fallback:
        return ResizeFallback(density=density, target_width_px=target_width_px)
    return ExactDensity(density=density)


def expected_logo_height(probe: LogoProbe, density: int,
                         reference_density: int = REFERENCE_DENSITY) -> int:
    # Vector output scales linearly with density.
    return max(1, round(probe.reference_height_px * density / reference_density))
