"""
Draw command emitter.

Turns a solved graph and its routed connectors into the ordered,
backend-neutral command list a Drawing executes: a white background, then
boxes sorted by id, then connectors in declaration order.
"""

import logging
from typing import List, Sequence

from .geometry import BLACK, WHITE, Point
from .graphics import (
    AddRect,
    DrawCommand,
    DrawText,
    Fill,
    FillAndStrokePath,
    FillPath,
    Graphics,
    LineTo,
    MoveTo,
    PathStyle,
    SetFill,
    StrokePath,
    StyledText,
)
from .model import Box, Graph, ResolvedStyle

logger = logging.getLogger(__name__)

LABEL_FONT_SIZE = 16
BACKGROUND_COLOR = WHITE
LINE_COLOR = BLACK


def label_text(box: Box, style: ResolvedStyle) -> StyledText:
    """The styled label of a box, as measured and as drawn."""
    return StyledText(
        text=box.label,
        font_size=LABEL_FONT_SIZE,
        alignment="center",
        color=style.text_color,
    )


def draw_commands(graph: Graph, connectors: Sequence, graphics: Graphics) -> List[DrawCommand]:
    """
    Emit draw commands for a solved graph.

    Args:
        graph: The solved graph.
        connectors: RoutedConnector values in declaration order.
        graphics: Rendering collaborator, used to center labels.

    Returns:
        The command list.
    """
    commands: List[DrawCommand] = [
        SetFill(BACKGROUND_COLOR),
        Fill((graph.frame,)),
    ]

    for box in graph.sorted_boxes():
        frame = graph.box_frame(box.id)
        style = graph.resolved_style(box)
        commands.append(AddRect(frame))
        if style.background_color is not None:
            commands.append(
                FillAndStrokePath(PathStyle(stroke_color=LINE_COLOR, fill_color=style.background_color))
            )
        else:
            commands.append(StrokePath(PathStyle(stroke_color=LINE_COLOR)))

        text = label_text(box, style)
        size = graphics.measure(text)
        center = frame.center
        origin = Point(center.x - size.width / 2.0, center.y - size.height / 2.0)
        commands.append(DrawText(text, origin))

    for connector in connectors:
        line_width = connector.arrow.line_width
        commands.append(MoveTo(connector.points[0]))
        for point in connector.points[1:]:
            commands.append(LineTo(point))
        commands.append(StrokePath(PathStyle(line_width=line_width, stroke_color=LINE_COLOR)))

        for head in (connector.source_head, connector.target_head):
            if head is None:
                continue
            tip, corner1, corner2 = head
            commands.extend([MoveTo(tip), LineTo(corner1), LineTo(corner2)])
            commands.append(
                FillPath(PathStyle(line_width=line_width, stroke_color=LINE_COLOR, fill_color=LINE_COLOR))
            )

    logger.debug("Emitted %d draw commands", len(commands))
    return commands
