"""Unit tests for draw command emission."""

from boxarrows.builder import build_model
from boxarrows.constraints import ConstraintBuilder
from boxarrows.draw import draw_commands, label_text
from boxarrows.geometry import BLACK, RED, WHITE, Color, Point, Rectangle
from boxarrows.graphics import (
    AddRect,
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
from boxarrows.model import Arrow
from boxarrows.routing import RoutedConnector


def solved_graph(parser, graphics, text):
    result = build_model(parser.parse(text))
    ConstraintBuilder(graphics).solve(result.graph, result.equations)
    return result.graph


class TestBoxes:
    """Tests for box commands."""

    def test_plain_box(self, parser, graphics):
        """Test background, outline and centered label for one box."""
        graph = solved_graph(parser, graphics, "box a")
        assert draw_commands(graph, [], graphics) == [
            SetFill(WHITE),
            Fill((Rectangle.from_bounds(0, 0, 110, 120),)),
            AddRect(Rectangle.from_bounds(50, 50, 10, 20)),
            StrokePath(PathStyle(stroke_color=BLACK)),
            DrawText(StyledText("a", 16, "center", BLACK), Point(50, 50)),
        ]

    def test_filled_box(self, parser, graphics):
        """Test a background color fills and strokes in one command."""
        graph = solved_graph(parser, graphics, "box a { background-color: red; text-color: white }")
        commands = draw_commands(graph, [], graphics)
        assert commands[3] == FillAndStrokePath(PathStyle(stroke_color=BLACK, fill_color=RED))
        assert commands[4].text.color == WHITE

    def test_translucent_color_kept(self, parser, graphics):
        """Test alpha survives into the fill style."""
        graph = solved_graph(parser, graphics, "box a { background-color: #FF000080 }")
        fill = draw_commands(graph, [], graphics)[3].style.fill_color
        assert fill == Color.from_bytes(0xFF, 0, 0, 0x80)

    def test_boxes_sorted_by_id(self, parser, graphics):
        """Test boxes draw in id order regardless of declaration order."""
        graph = solved_graph(
            parser,
            graphics,
            "box zeta\nbox alpha\nconstrain alpha.left == zeta.right + 10\nconstrain alpha.top == zeta.top",
        )
        labels = [command.text.text for command in draw_commands(graph, [], graphics) if isinstance(command, DrawText)]
        assert labels == ["alpha", "zeta"]

    def test_label_text(self, parser):
        """Test labels use the resolved text color."""
        graph = build_model(parser.parse("box a { text-color: red }")).graph
        box = graph.boxes["a"]
        assert label_text(box, graph.resolved_style(box)) == StyledText("a", 16, "center", RED)


class TestConnectors:
    """Tests for connector commands."""

    def test_line_and_head(self, parser, graphics, path_points):
        """Test a polyline stroke followed by a filled head."""
        graph = solved_graph(parser, graphics, "box a")
        connector = RoutedConnector(
            Arrow("a", "a", line_width=2.0),
            (Point(0, 0), Point(10, 0), Point(10, 10)),
            None,
            (Point(10, 10), Point(6, 5), Point(14, 5)),
        )
        commands = draw_commands(graph, [connector], graphics)[5:]
        assert commands == [
            MoveTo(Point(0, 0)),
            LineTo(Point(10, 0)),
            LineTo(Point(10, 10)),
            StrokePath(PathStyle(line_width=2.0, stroke_color=BLACK)),
            MoveTo(Point(10, 10)),
            LineTo(Point(6, 5)),
            LineTo(Point(14, 5)),
            FillPath(PathStyle(line_width=2.0, stroke_color=BLACK, fill_color=BLACK)),
        ]
        assert path_points(commands) == [
            [Point(0, 0), Point(10, 0), Point(10, 10)],
            [Point(10, 10), Point(6, 5), Point(14, 5)],
        ]
