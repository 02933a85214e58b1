from __future__ import annotations
from enum import Enum

from logostamp.errors import InvalidInput


class Placement(Enum):
    TOP_LEFT = "TopLeft"
    TOP_RIGHT = "TopRight"
    BOTTOM_RIGHT = "BottomRight"
    BOTTOM_LEFT = "BottomLeft"
    CENTER = "Center"

    @classmethod
    def parse(cls, value: "Placement | str") -> "Placement":
        if isinstance(value, cls):
            return value
        text = str(value).replace("-", "").replace("_", "").replace(" ", "").lower()
        for member in cls:
            if member.value.lower() == text:
                return member
        raise InvalidInput(f"Unrecognized position: {value!r}")


class BaseDimension(Enum):
    WIDTH = "width"
    HEIGHT = "height"
    SHORTER = "shorter"  # min(width, height)

    @classmethod
    def parse(cls, value: "BaseDimension | str") -> "BaseDimension":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidInput(f"Unrecognized base dimension: {value!r}") from None


class OutputFormat(Enum):
    PNG = "PNG"    # lossless, keeps alpha
    JPEG = "JPEG"  # lossy, alpha removed

    @property
    def extension(self) -> str:
        return ".png" if self is OutputFormat.PNG else ".jpg"

    @classmethod
    def parse(cls, value: "OutputFormat | str") -> "OutputFormat":
        if isinstance(value, cls):
            return value
        text = str(value).strip().lstrip(".").lower()
        if text == "png":
            return cls.PNG
        if text in ("jpg", "jpeg"):
            return cls.JPEG
        raise InvalidInput(f"Unsupported output format: {value!r}")
