from __future__ import annotations

from logostamp.errors import InvalidInput
from logostamp.models.enums import BaseDimension
from logostamp.models.settings import MarginPolicy, SizingPolicy


def basis_for(bg_width: int, bg_height: int, base_dimension: BaseDimension) -> int:
    if base_dimension is BaseDimension.WIDTH:
        return bg_width
    if base_dimension is BaseDimension.HEIGHT:
        return bg_height
    return min(bg_width, bg_height)


def compute_target_width(bg_width: int, bg_height: int, policy: SizingPolicy) -> int:
    """Logo width in pixels for a background, never below 1.

    Python's round() is used throughout (half to even).
    """
    if bg_width <= 0 or bg_height <= 0:
        raise InvalidInput(f"Background dimensions must be positive: {bg_width}x{bg_height}")
    if policy.percent_of_size <= 0:
        raise InvalidInput(f"percent_of_size must be positive: {policy.percent_of_size}")
    basis = basis_for(bg_width, bg_height, policy.base_dimension)
    return max(1, round(basis * policy.percent_of_size))


def compute_margin(final_logo_height: int, policy: MarginPolicy, is_centered: bool) -> int:
    if is_centered:
        return 0
    if policy.margin_px >= 0:
        return policy.margin_px
    return max(1, round(final_logo_height * policy.margin_height_ratio))
