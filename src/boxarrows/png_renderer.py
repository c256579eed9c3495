"""
PNG Renderer module for diagrams.

Pillow implementation of the rendering collaborator. Measures labels with
ImageDraw.multiline_textbbox and executes draw commands on a white RGB
image, supersampled by `scale` for crisp output.
"""

import logging
import math
import os
from typing import Dict, List, Optional, Sequence, Tuple, Union

from PIL import Image, ImageDraw, ImageFont

from .geometry import WHITE, Color, Point, Rectangle, Size
from .graphics import (
    AddRect,
    DrawCommand,
    DrawText,
    Fill,
    FillAndStrokePath,
    FillPath,
    LineTo,
    MoveTo,
    PathStyle,
    SetFill,
    StrokePath,
    StyledText,
)

logger = logging.getLogger(__name__)

FONT_OPTIONS = [
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
    "/usr/share/fonts/truetype/freefont/FreeSans.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf",
    "/usr/share/fonts/truetype/ubuntu/Ubuntu-R.ttf",
]

FontType = Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]


class PillowGraphics:
    """Measures text and creates Pillow drawings."""

    def __init__(self, font_size: int = 16, font_path: Optional[str] = None, scale: int = 2):
        """
        Args:
            font_size: Default font size for text without an explicit size.
            font_path: Custom TrueType font; system fonts are tried otherwise.
            scale: Pixels per diagram unit.
        """
        self.font_size = font_size
        self.font_path = font_path
        self.scale = scale
        self._fonts: Dict[float, FontType] = {}
        self._measure_draw = ImageDraw.Draw(Image.new("RGB", (1, 1), WHITE.to_bytes()[:3]))

    def get_font(self, font_size: Optional[float] = None) -> FontType:
        """Load (and cache) a font at `font_size` diagram units."""
        size = font_size if font_size is not None else self.font_size
        if size in self._fonts:
            return self._fonts[size]

        pixel_size = max(1, int(round(size * self.scale)))
        candidates = ([self.font_path] if self.font_path else []) + FONT_OPTIONS

        font: Optional[FontType] = None
        for path in candidates:
            if os.path.exists(path):
                try:
                    font = ImageFont.truetype(path, pixel_size)
                    break
                except OSError:
                    logger.debug("Could not load font %s", path)
                    continue

        if font is None:
            font = ImageFont.load_default()

        self._fonts[size] = font
        return font

    def measure(self, text: StyledText) -> Size:
        """Bounding size of `text` in diagram units."""
        if not text.text:
            return Size(0.0, 0.0)
        left, top, right, bottom = self._measure_draw.multiline_textbbox(
            (0, 0), text.text, font=self.get_font(text.font_size), align=text.alignment
        )
        return Size((right - left) / self.scale, (bottom - top) / self.scale)

    def make_drawing(self, size: Size) -> "PillowDrawing":
        return PillowDrawing(self, size)


class PillowDrawing:
    """Executes draw commands onto a new Pillow image."""

    def __init__(self, graphics: PillowGraphics, size: Size):
        self.graphics = graphics
        self.size = size

    def draw(self, commands: Sequence[DrawCommand]) -> Image.Image:
        """
        Execute `commands` in order.

        Returns:
            An RGB image of `size` times the graphics scale.
        """
        scale = self.graphics.scale
        width = max(1, int(math.ceil(self.size.width * scale)))
        height = max(1, int(math.ceil(self.size.height * scale)))
        image = Image.new("RGB", (width, height), WHITE.to_bytes()[:3])
        # RGBA mode blends translucent colors onto the RGB image.
        canvas = ImageDraw.Draw(image, "RGBA")

        fill_color = WHITE
        subpaths: List[Tuple[List[Tuple[float, float]], bool]] = []

        for command in commands:
            if isinstance(command, SetFill):
                fill_color = command.color
            elif isinstance(command, Fill):
                for rect in command.rectangles:
                    canvas.rectangle(self._box(rect), fill=fill_color.to_bytes())
            elif isinstance(command, AddRect):
                subpaths.append((self._corners(command.rectangle), True))
            elif isinstance(command, MoveTo):
                subpaths.append(([self._xy(command.point)], False))
            elif isinstance(command, LineTo):
                if subpaths:
                    subpaths[-1][0].append(self._xy(command.point))
                else:
                    subpaths.append(([self._xy(command.point)], False))
            elif isinstance(command, DrawText):
                self._text(canvas, command)
            elif isinstance(command, StrokePath):
                self._stroke(canvas, subpaths, command.style)
                subpaths = []
            elif isinstance(command, FillPath):
                self._fill(canvas, subpaths, command.style, fill_color)
                subpaths = []
            elif isinstance(command, FillAndStrokePath):
                self._fill(canvas, subpaths, command.style, fill_color)
                self._stroke(canvas, subpaths, command.style)
                subpaths = []
            else:
                raise TypeError(f"Unknown draw command {command!r}")

        return image

    def _xy(self, point: Point) -> Tuple[float, float]:
        scale = self.graphics.scale
        return point.x * scale, point.y * scale

    def _box(self, rect: Rectangle) -> Tuple[float, float, float, float]:
        scale = self.graphics.scale
        return rect.min_x * scale, rect.min_y * scale, rect.max_x * scale, rect.max_y * scale

    def _corners(self, rect: Rectangle) -> List[Tuple[float, float]]:
        return [
            self._xy(Point(rect.min_x, rect.min_y)),
            self._xy(Point(rect.max_x, rect.min_y)),
            self._xy(Point(rect.max_x, rect.max_y)),
            self._xy(Point(rect.min_x, rect.max_y)),
        ]

    def _line_width(self, style: PathStyle) -> int:
        return max(1, int(round(style.line_width * self.graphics.scale)))

    def _stroke(self, canvas: ImageDraw.ImageDraw, subpaths, style: PathStyle):
        color = style.stroke_color.to_bytes()
        width = self._line_width(style)
        for points, closed in subpaths:
            if closed:
                canvas.polygon(points, outline=color, width=width)
            elif len(points) > 1:
                canvas.line(points, fill=color, width=width, joint="curve")

    def _fill(self, canvas: ImageDraw.ImageDraw, subpaths, style: PathStyle, fill_color: Color):
        color = (style.fill_color if style.fill_color is not None else fill_color).to_bytes()
        for points, _ in subpaths:
            if len(points) > 2:
                canvas.polygon(points, fill=color)

    def _text(self, canvas: ImageDraw.ImageDraw, command: DrawText):
        text = command.text
        if not text.text:
            return
        font = self.graphics.get_font(text.font_size)
        x, y = self._xy(command.point)
        # textbbox may start below/right of the anchor; shift so the box
        # lands exactly at the requested origin.
        left, top, _, _ = canvas.multiline_textbbox(
            (0, 0), text.text, font=font, align=text.alignment
        )
        canvas.multiline_text(
            (x - left, y - top),
            text.text,
            font=font,
            fill=text.color.to_bytes(),
            align=text.alignment,
        )
