import pytest

from logostamp.errors import InvalidInput
from logostamp.imaging.placement import resolve_anchor
from logostamp.models.enums import Placement


@pytest.mark.parametrize("placement,anchor", [
    (Placement.TOP_LEFT, "northwest"),
    (Placement.TOP_RIGHT, "northeast"),
    (Placement.BOTTOM_RIGHT, "southeast"),
    (Placement.BOTTOM_LEFT, "southwest"),
    (Placement.CENTER, "center"),
])
def test_anchor_mapping(placement, anchor):
    assert resolve_anchor(placement) == anchor


def test_anchor_accepts_text():
    assert resolve_anchor("BottomLeft") == "southwest"
    assert resolve_anchor("bottom-left") == "southwest"


def test_unknown_placement_fails_closed():
    with pytest.raises(InvalidInput):
        resolve_anchor("Middle")


def test_unknown_placement_error_names_value():
    with pytest.raises(InvalidInput, match="Sideways"):
        resolve_anchor("Sideways")
