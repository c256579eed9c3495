"""
Constraint builder.

Translates a Graph and the user equations into kiwisolver constraints,
solves once, and leaves the solved values readable through the graph's
VariableTable.

Box geometry, per box:

    left <= centerX <= right         top <= centerY <= bottom
    right == left + width            bottom == top + height
    centerX == left + width / 2      centerY == top + height / 2
    width >= measured width          height >= measured height
    box edges at least OUTER_MARGIN inside the graph edges

Measured sizes come from the rendering collaborator. Width and height also
carry a strong preference for the measured size, and the graph's right and
bottom edges are weakly pulled toward zero, so an unconstrained layout is
as compact as its required constraints allow.
"""

import logging
from typing import Any, Optional, Sequence

import kiwisolver

from .draw import label_text
from .equation import Equation, Relation, Variable, reduce_side
from .errors import EquationFormatError, UndefinedReferenceError
from .geometry import Size
from .graphics import Graphics
from .model import GRAPH_ID, Anchors, Box, Graph

logger = logging.getLogger(__name__)

# =============================================================================
# LAYOUT CONFIGURATION
# =============================================================================

# Minimum distance between any box edge and the graph edge.
OUTER_MARGIN = 50.0

MEASURED_SIZE_STRENGTH = "strong"
COMPACT_GRAPH_STRENGTH = "weak"


class ConstraintBuilder:
    """Builds and solves the constraint system for one graph."""

    def __init__(self, graphics: Graphics, outer_margin: float = OUTER_MARGIN):
        """
        Initialize the builder.

        Args:
            graphics: Rendering collaborator used to measure box labels.
            outer_margin: Minimum gap between boxes and the graph bounds.
        """
        self.graphics = graphics
        self.outer_margin = outer_margin
        self._constraint_count = 0

    def solve(self, graph: Graph, equations: Sequence[Equation]) -> kiwisolver.Solver:
        """
        Add all constraints for `graph` and `equations`, then solve once.

        Args:
            graph: The diagram model; its variables are written by the solver.
            equations: User equations in declaration order.

        Returns:
            The solver, already updated.

        Raises:
            UndefinedReferenceError: If an equation names an unknown box or
                anchor.
            EquationFormatError: If an equation uses `<` or `>`.
            kiwisolver.UnsatisfiableConstraint: If the system has no solution.
        """
        solver = kiwisolver.Solver()
        self._constraint_count = 0

        for box in graph.boxes.values():
            self._add_box(solver, graph, box)
        self._add_graph(solver, graph)

        for equation in equations:
            self._add(solver, self.translate(graph, equation))

        solver.updateVariables()
        logger.debug("Solved %d constraints over %d variables", self._constraint_count, len(graph.variables))
        return solver

    def measure(self, graph: Graph, box: Box) -> Size:
        """Return the label size of `box` including horizontal padding."""
        style = graph.resolved_style(box)
        size = self.graphics.measure(label_text(box, style))
        return Size(size.width + 2.0 * style.horizontal_padding, size.height)

    def translate(self, graph: Graph, equation: Equation) -> kiwisolver.Constraint:
        """
        Turn a user equation into a solver constraint.

        Both sides fold left to right exactly as during validation, with each
        variable resolved to its anchor.
        """
        if equation.relation in (Relation.LT, Relation.GT):
            raise EquationFormatError(
                f"Relation '{equation.relation}' cannot be solved, use '<=' or '>='",
                equation.tokens(),
            )

        def resolve(variable: Variable) -> kiwisolver.Variable:
            return graph.variables.variable(resolve_anchor(graph, variable))

        left = _as_expression(reduce_side(equation.left, resolve))
        right = _as_expression(reduce_side(equation.right, resolve))

        if equation.relation is Relation.LTE:
            return left <= right
        if equation.relation is Relation.GTE:
            return left >= right
        return left == right

    def _add_box(self, solver: kiwisolver.Solver, graph: Graph, box: Box):
        v = _AnchorVariables(graph, box.anchors)
        g = _AnchorVariables(graph, graph.anchors)
        margin = self.outer_margin
        size = self.measure(graph, box)

        for constraint in (
            v.left <= v.centerX,
            v.centerX <= v.right,
            v.top <= v.centerY,
            v.centerY <= v.bottom,
            v.left >= g.left + margin,
            v.top >= g.top + margin,
            v.right <= g.right - margin,
            v.bottom <= g.bottom - margin,
            v.height >= 0,
            v.height >= size.height,
            v.width >= 0,
            v.width >= size.width,
            v.bottom == v.top + v.height,
            v.centerY == v.top + v.height / 2.0,
            v.right == v.left + v.width,
            v.centerX == v.left + v.width / 2.0,
        ):
            self._add(solver, constraint)

        self._add(solver, (v.width == size.width) | MEASURED_SIZE_STRENGTH)
        self._add(solver, (v.height == size.height) | MEASURED_SIZE_STRENGTH)

    def _add_graph(self, solver: kiwisolver.Solver, graph: Graph):
        g = _AnchorVariables(graph, graph.anchors)
        for constraint in (
            g.left == 0,
            g.top == 0,
            g.left <= g.centerX,
            g.centerX <= g.right,
            g.top <= g.centerY,
            g.centerY <= g.bottom,
            g.width == g.right - g.left,
            g.height == g.bottom - g.top,
            g.centerX == g.left + g.width / 2.0,
            g.centerY == g.top + g.height / 2.0,
        ):
            self._add(solver, constraint)

        self._add(solver, (g.right == 0) | COMPACT_GRAPH_STRENGTH)
        self._add(solver, (g.bottom == 0) | COMPACT_GRAPH_STRENGTH)

    def _add(self, solver: kiwisolver.Solver, constraint: kiwisolver.Constraint):
        solver.addConstraint(constraint)
        self._constraint_count += 1


def resolve_anchor(graph: Graph, variable: Variable) -> int:
    """
    Map `box.anchor` or `graph.anchor` to a variable index.

    Raises:
        UndefinedReferenceError: If the head is not a box or the graph, or
            the tail is not exactly one anchor name.
    """
    if variable.head == GRAPH_ID:
        anchors = graph.anchors
    elif variable.head in graph.boxes:
        anchors = graph.boxes[variable.head].anchors
    else:
        raise UndefinedReferenceError(variable.head, "box")

    index: Optional[int] = None
    if len(variable.tail) == 1:
        index = anchors.index(variable.tail[0])
    if index is None:
        raise UndefinedReferenceError(str(variable), "anchor")
    return index


class _AnchorVariables:
    """Attribute access to the solver variables behind a set of anchors."""

    def __init__(self, graph: Graph, anchors: Anchors):
        self._graph = graph
        self._anchors = anchors

    def __getattr__(self, name: str) -> kiwisolver.Variable:
        return self._graph.variables.variable(getattr(self._anchors, name))


def _as_expression(value: Any) -> Any:
    # A side that folded to a plain number still has to compare as an
    # expression, otherwise `3 == 3` would evaluate to a Python bool.
    if isinstance(value, (int, float)):
        return kiwisolver.Expression((), float(value))
    return value
