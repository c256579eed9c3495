"""Pytest configuration and shared fixtures for boxarrows tests."""

from typing import List, Sequence

import pytest

from boxarrows import DiagramGenerator, Parser
from boxarrows.geometry import Point, Size
from boxarrows.graphics import DrawCommand, LineTo, MoveTo, StyledText


class RecordingDrawing:
    """Drawing that returns the commands it was given."""

    def __init__(self, size: Size):
        self.size = size

    def draw(self, commands: Sequence[DrawCommand]) -> List[DrawCommand]:
        return list(commands)


class RecordingGraphics:
    """Deterministic text metrics: 10 units per character, 20 per line."""

    char_width = 10.0
    line_height = 20.0

    def __init__(self):
        self.measured: List[StyledText] = []

    def measure(self, text: StyledText) -> Size:
        self.measured.append(text)
        lines = text.text.split("\n")
        longest = max(len(line) for line in lines)
        return Size(longest * self.char_width, len(lines) * self.line_height)

    def make_drawing(self, size: Size) -> RecordingDrawing:
        return RecordingDrawing(size)


def group_polylines(commands: Sequence[DrawCommand]) -> List[List[Point]]:
    """Group MoveTo/LineTo commands into polylines, one per MoveTo."""
    polylines: List[List[Point]] = []
    for command in commands:
        if isinstance(command, MoveTo):
            polylines.append([command.point])
        elif isinstance(command, LineTo) and polylines:
            polylines[-1].append(command.point)
    return polylines


@pytest.fixture
def path_points():
    """Helper that groups recorded path commands into polylines."""
    return group_polylines


@pytest.fixture
def graphics():
    """In-memory rendering collaborator."""
    return RecordingGraphics()


@pytest.fixture
def generator(graphics):
    """DiagramGenerator backed by RecordingGraphics."""
    return DiagramGenerator(graphics)


@pytest.fixture
def parser():
    """Default Parser instance."""
    return Parser()


@pytest.fixture
def styled_pair_spec():
    """Two boxes side by side, one styled, joined by an arrow."""
    return """
    box-style style1 { background-color: #FF90F4; text-color: black; }

    box n1 { style: style1 }
    box n2

    connect n1 n2 { head2: filled_vee }
    constrain n1.left == n2.right + 30.0
    constrain n1.top == n2.top
    """


@pytest.fixture
def stacked_spec():
    """Five stacked boxes with two arrows skipping over the middle ones."""
    return """
    box box1
    box box2
    box box3
    box box4
    box box5

    connect box1 box4 { head2: filled_vee }
    connect box2 box5 { head2: filled_vee }

    constrain box1.left == box2.left
    constrain box1.left == box3.left
    constrain box1.left == box4.left
    constrain box1.left == box5.left
    constrain box1.bottom + 40.0 == box2.top
    constrain box2.bottom + 40.0 == box3.top
    constrain box3.bottom + 40.0 == box4.top
    constrain box4.bottom + 40.0 == box5.top
    """


@pytest.fixture
def walled_spec():
    """An arrow whose target is enclosed by another box."""
    return """
    box src
    box dst
    box wall { label: "" }

    connect src dst { head2: filled_vee }

    constrain wall.left == dst.left - 30
    constrain wall.top == dst.top - 30
    constrain wall.width == dst.width + 60
    constrain wall.height == dst.height + 60
    constrain src.left == wall.right + 40
    constrain src.top == wall.top
    """
