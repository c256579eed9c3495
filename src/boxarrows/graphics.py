"""
Rendering collaborator interface.

The pipeline never rasterizes anything itself. It asks a Graphics backend
to measure label text, then hands a Drawing an ordered list of draw
commands. Backends are duck-typed; see `png_renderer.PillowGraphics` for
the Pillow one.
"""

from dataclasses import dataclass
from typing import Any, Optional, Protocol, Sequence, Tuple, Union

from .geometry import BLACK, Color, Point, Rectangle, Size


@dataclass(frozen=True)
class StyledText:
    """
    Text plus the attributes needed to measure and draw it.

    Attributes:
        text: The string; may contain newlines.
        font_size: Font size in diagram units.
        alignment: Horizontal alignment of lines, "left", "center" or "right".
        color: Text color.
    """

    text: str
    font_size: float = 16
    alignment: str = "center"
    color: Color = BLACK


@dataclass(frozen=True)
class PathStyle:
    line_width: float = 1.0
    stroke_color: Color = BLACK
    fill_color: Optional[Color] = None


@dataclass(frozen=True)
class SetFill:
    color: Color


@dataclass(frozen=True)
class Fill:
    rectangles: Tuple[Rectangle, ...]


@dataclass(frozen=True)
class AddRect:
    rectangle: Rectangle


@dataclass(frozen=True)
class MoveTo:
    point: Point


@dataclass(frozen=True)
class LineTo:
    point: Point


@dataclass(frozen=True)
class DrawText:
    text: StyledText
    point: Point


@dataclass(frozen=True)
class StrokePath:
    style: PathStyle = PathStyle()


@dataclass(frozen=True)
class FillPath:
    style: PathStyle = PathStyle()


@dataclass(frozen=True)
class FillAndStrokePath:
    style: PathStyle = PathStyle()


DrawCommand = Union[
    SetFill,
    Fill,
    AddRect,
    MoveTo,
    LineTo,
    DrawText,
    StrokePath,
    FillPath,
    FillAndStrokePath,
]


class Drawing(Protocol):
    def draw(self, commands: Sequence[DrawCommand]) -> Any:
        """Execute commands and return the backend's image."""
        ...


class Graphics(Protocol):
    def measure(self, text: StyledText) -> Size:
        """Return the bounding size of the rendered text."""
        ...

    def make_drawing(self, size: Size) -> Drawing:
        ...
