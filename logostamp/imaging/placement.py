from __future__ import annotations
from typing import Dict

from logostamp.models.enums import Placement

# ImageMagick -gravity names
PLACEMENT_TO_ANCHOR: Dict[Placement, str] = {
    Placement.TOP_LEFT: "northwest",
    Placement.TOP_RIGHT: "northeast",
    Placement.BOTTOM_RIGHT: "southeast",
    Placement.BOTTOM_LEFT: "southwest",
    Placement.CENTER: "center",
}


def resolve_anchor(placement: Placement | str) -> str:
    """Map a placement to its compositing anchor. Unknown values raise InvalidInput."""
    return PLACEMENT_TO_ANCHOR[Placement.parse(placement)]


def is_centered(placement: Placement) -> bool:
    return placement is Placement.CENTER
