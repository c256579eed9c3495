"""
Main diagram generator module.

Runs the whole pipeline once per call: parse, build the model, solve the
layout, route connectors, emit draw commands, and hand them to a Drawing.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional

from .builder import ModelBuilder
from .constraints import OUTER_MARGIN, ConstraintBuilder
from .draw import draw_commands
from .geometry import Size
from .graphics import DrawCommand, Graphics
from .model import Graph
from .parser import Parser
from .routing import CELL_SIDE, MARGIN_STEP, RoutedConnector, Router

logger = logging.getLogger(__name__)


@dataclass
class Diagram:
    """
    Everything produced for one spec.

    Attributes:
        graph: The solved model; frames are readable from it.
        connectors: Connectors that could be routed, in declaration order.
        commands: Draw commands for the whole diagram.
    """

    graph: Graph
    connectors: List[RoutedConnector]
    commands: List[DrawCommand]

    @property
    def size(self) -> Size:
        return self.graph.frame.size


class DiagramGenerator:
    """
    Generate diagrams from spec text.

    Example:
        >>> generator = DiagramGenerator()
        >>> image = generator.render('''
        ...     box a
        ...     box b
        ...     connect a b { head2: filled_vee }
        ...     constrain b.left == a.right + 40
        ...     constrain b.top == a.top
        ... ''')
        >>> image.save("diagram.png")
    """

    def __init__(
        self,
        graphics: Optional[Graphics] = None,
        outer_margin: float = OUTER_MARGIN,
        cell_side: int = CELL_SIDE,
        margin_step: float = MARGIN_STEP,
    ):
        """
        Initialize the diagram generator.

        Args:
            graphics: Rendering collaborator; defaults to PillowGraphics.
            outer_margin: Minimum gap between boxes and the diagram edge.
            cell_side: Routing grid cell side.
            margin_step: Per-connector obstacle growth while routing.
        """
        if graphics is None:
            from .png_renderer import PillowGraphics

            graphics = PillowGraphics()
        self.graphics = graphics
        self.parser = Parser()
        self.model_builder = ModelBuilder()
        self.constraint_builder = ConstraintBuilder(graphics, outer_margin=outer_margin)
        self.router = Router(cell_side=cell_side, margin_step=margin_step)

    def build(self, spec_text: str) -> Diagram:
        """
        Run the pipeline up to the command list.

        Raises:
            DiagramError: On any parse, reference or field error.
            kiwisolver.UnsatisfiableConstraint: If the layout has no solution.
        """
        declarations = self.parser.parse(spec_text)
        result = self.model_builder.build(declarations)
        self.constraint_builder.solve(result.graph, result.equations)
        connectors = self.router.route_all(result.graph)
        commands = draw_commands(result.graph, connectors, self.graphics)
        logger.debug(
            "Routed %d of %d connectors", len(connectors), len(result.graph.arrows)
        )
        return Diagram(result.graph, connectors, commands)

    def generate(self, spec_text: str) -> List[DrawCommand]:
        """Return the draw commands for a spec."""
        return self.build(spec_text).commands

    def render(self, spec_text: str) -> Any:
        """Draw a spec with the configured backend and return its image."""
        diagram = self.build(spec_text)
        return self.graphics.make_drawing(diagram.size).draw(diagram.commands)

    def save_png(self, spec_text: str, filename: str) -> Path:
        """
        Render a spec and save it as PNG.

        Args:
            spec_text: Spec source.
            filename: Output path; `.png` is appended if missing.

        Returns:
            The path written.
        """
        path = Path(filename)
        if path.suffix.lower() != ".png":
            path = path.with_name(path.name + ".png")
        image = self.render(spec_text)
        image.save(str(path), "PNG")
        return path


def draw_spec(spec_text: str, graphics: Graphics) -> Any:
    """Convenience function: render `spec_text` with `graphics`."""
    return DiagramGenerator(graphics).render(spec_text)
