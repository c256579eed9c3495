"""
boxarrows - Boxes and arrows diagrams from a small declarative language

Boxes are placed by linear equations solved with kiwisolver, and connectors
are routed around boxes on a grid.

Example:
    >>> from boxarrows import DiagramGenerator
    >>> generator = DiagramGenerator()
    >>> image = generator.render('''
    ...     box n1 { label: "Start" }
    ...     box n2
    ...     connect n1 n2 { head2: filled_vee }
    ...     constrain n2.left == n1.right + 40
    ...     constrain n2.top == n1.top
    ... ''')
    >>> image.save("diagram.png")
"""

from .builder import BuildResult, ModelBuilder, build_model
from .constraints import ConstraintBuilder
from .equation import Equation, Relation, parse_equation
from .errors import (
    DiagramError,
    DuplicateDefinitionError,
    EquationFormatError,
    ParseError,
    UndefinedReferenceError,
    UnsupportedFieldError,
)
from .generator import Diagram, DiagramGenerator, draw_spec
from .geometry import Color, Point, Rectangle, Size
from .graphics import DrawCommand, PathStyle, StyledText
from .grid import AccessGrid, ConnectionPointRegistry, Coordinate
from .model import Arrow, ArrowHead, Box, BoxStyle, Graph
from .parser import Parser, format_declarations, parse_spec
from .png_renderer import PillowDrawing, PillowGraphics
from .routing import RoutedConnector, Router

__version__ = "0.1.0"

__all__ = [
    # Main API
    "DiagramGenerator",
    "Diagram",
    "draw_spec",
    # Parser
    "Parser",
    "parse_spec",
    "format_declarations",
    "Equation",
    "Relation",
    "parse_equation",
    # Errors
    "DiagramError",
    "ParseError",
    "EquationFormatError",
    "UndefinedReferenceError",
    "UnsupportedFieldError",
    "DuplicateDefinitionError",
    # Model
    "ModelBuilder",
    "BuildResult",
    "build_model",
    "Graph",
    "Box",
    "BoxStyle",
    "Arrow",
    "ArrowHead",
    "ConstraintBuilder",
    # Geometry
    "Point",
    "Size",
    "Rectangle",
    "Color",
    # Routing
    "AccessGrid",
    "ConnectionPointRegistry",
    "Coordinate",
    "Router",
    "RoutedConnector",
    # Rendering
    "DrawCommand",
    "PathStyle",
    "StyledText",
    "PillowGraphics",
    "PillowDrawing",
]
