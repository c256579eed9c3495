"""
Geometry primitives for diagram layout and drawing.

Pure value types shared by every stage of the pipeline: points, sizes,
axis-aligned rectangles and RGBA colors. Rectangles use closed-interval
comparison, so touching edges count as intersecting/containing.

Classes:
    Point: A location in diagram units.
    Size: A width/height pair.
    Rectangle: An origin plus a size, with min/max accessors.
    Color: An RGBA color with components normalized to [0, 1].
"""

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class Point:
    """A location in diagram units (y grows downward)."""

    x: float
    y: float


@dataclass(frozen=True)
class Size:
    """A width/height pair."""

    width: float
    height: float


@dataclass(frozen=True)
class Rectangle:
    """
    An axis-aligned rectangle.

    Attributes:
        origin: Top-left corner.
        size: Extent along x (width) and y (height).
    """

    origin: Point
    size: Size

    @classmethod
    def from_bounds(cls, x: float, y: float, width: float, height: float) -> "Rectangle":
        return cls(Point(x, y), Size(width, height))

    @property
    def min_x(self) -> float:
        return self.origin.x

    @property
    def min_y(self) -> float:
        return self.origin.y

    @property
    def max_x(self) -> float:
        return self.origin.x + self.size.width

    @property
    def max_y(self) -> float:
        return self.origin.y + self.size.height

    @property
    def width(self) -> float:
        return self.size.width

    @property
    def height(self) -> float:
        return self.size.height

    @property
    def center(self) -> Point:
        return Point(
            self.origin.x + self.size.width / 2.0,
            self.origin.y + self.size.height / 2.0,
        )

    def inset_by(self, amount: float) -> "Rectangle":
        """
        Shrink the rectangle by `amount` on every side.

        A negative amount grows it instead.
        """
        return Rectangle(
            Point(self.min_x + amount, self.min_y + amount),
            Size(self.width - amount * 2.0, self.height - amount * 2.0),
        )

    def intersects(self, other: "Rectangle") -> bool:
        """Check overlap; shared edges count."""
        return (
            self.max_x >= other.min_x
            and self.min_x <= other.max_x
            and self.max_y >= other.min_y
            and self.min_y <= other.max_y
        )

    def contains(self, other: "Rectangle") -> bool:
        """Check that `other` lies within this rectangle, edges included."""
        return (
            self.max_x >= other.max_x
            and self.min_x <= other.min_x
            and self.min_y <= other.min_y
            and self.max_y >= other.max_y
        )


@dataclass(frozen=True)
class Color:
    """An RGBA color, each component in [0, 1]."""

    red: float
    green: float
    blue: float
    alpha: float = 1.0

    @classmethod
    def from_bytes(cls, red: int, green: int, blue: int, alpha: int = 255) -> "Color":
        return cls(red / 255.0, green / 255.0, blue / 255.0, alpha / 255.0)

    def to_bytes(self) -> tuple:
        """Return the color as an (r, g, b, a) tuple of 0-255 integers."""
        return tuple(
            int(round(component * 255.0))
            for component in (self.red, self.green, self.blue, self.alpha)
        )

    def hex(self) -> str:
        """Format as `#RRGGBB`, or `#RRGGBBAA` when not fully opaque."""
        red, green, blue, alpha = self.to_bytes()
        if alpha == 255:
            return f"#{red:02X}{green:02X}{blue:02X}"
        return f"#{red:02X}{green:02X}{blue:02X}{alpha:02X}"


CLEAR = Color(0.0, 0.0, 0.0, 0.0)
BLACK = Color(0.0, 0.0, 0.0)
WHITE = Color(1.0, 1.0, 1.0)
RED = Color(1.0, 0.0, 0.0)
GREEN = Color(0.0, 1.0, 0.0)
BLUE = Color(0.0, 0.0, 1.0)
YELLOW = Color(1.0, 1.0, 0.0)
CYAN = Color(0.0, 1.0, 1.0)
MAGENTA = Color(1.0, 0.0, 1.0)

NAMED_COLORS: Dict[str, Color] = {
    "clear": CLEAR,
    "black": BLACK,
    "white": WHITE,
    "red": RED,
    "green": GREEN,
    "blue": BLUE,
    "yellow": YELLOW,
    "cyan": CYAN,
    "magenta": MAGENTA,
}
