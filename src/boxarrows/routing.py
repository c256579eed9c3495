"""
Connector routing.

Routes each connector of a solved graph as an orthogonal polyline that
avoids the other boxes:

1. Build an AccessGrid for the connector. Other boxes are grown by
   MARGIN_STEP times the connector's 1-based index, so later connectors
   keep farther away from boxes than earlier ones.
2. Pick source and target cells from the facing sides of the two boxes,
   claiming them in a registry shared by the whole diagram.
3. Find the shortest cell path between them.
4. Trim the path to where it actually crosses the source and target edges.
5. Add elbows where overlapping boxes left a diagonal, then collapse
   collinear runs into single segments.
6. Compute filled arrowhead triangles where requested.

A connector that cannot be routed is skipped with a warning; routing never
raises for it.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .geometry import Point, Rectangle
from .grid import AccessGrid, ConnectionPointRegistry, Coordinate
from .model import Arrow, ArrowHead, Graph

logger = logging.getLogger(__name__)

# =============================================================================
# ROUTING CONFIGURATION
# =============================================================================

# Side of a grid cell in diagram units.
CELL_SIDE = 5

# Obstacle growth per connector index (margin = MARGIN_STEP * index).
MARGIN_STEP = 4

# Arrowhead base distance from the tip and half-width, both added to the
# connector's line width.
ARROWHEAD_LENGTH = 3.0
ARROWHEAD_HALF_WIDTH = 2.0

Triangle = Tuple[Point, Point, Point]


@dataclass(frozen=True)
class RoutedConnector:
    """
    A connector ready to draw.

    Attributes:
        arrow: The connector being drawn.
        points: Polyline from the source edge to the target edge.
        source_head: Filled triangle at the source end, if any.
        target_head: Filled triangle at the target end, if any.
    """

    arrow: Arrow
    points: Tuple[Point, ...]
    source_head: Optional[Triangle] = None
    target_head: Optional[Triangle] = None


class Router:
    """Routes every connector of a graph in declaration order."""

    def __init__(self, cell_side: int = CELL_SIDE, margin_step: float = MARGIN_STEP):
        self.cell_side = cell_side
        self.margin_step = margin_step

    def route_all(self, graph: Graph) -> List[RoutedConnector]:
        """
        Route all connectors of a solved graph.

        Returns:
            Routed connectors in declaration order; unroutable ones are
            left out.
        """
        registry = ConnectionPointRegistry()
        routed = []
        for index, arrow in enumerate(graph.arrows, start=1):
            connector = self.route(graph, arrow, index, registry)
            if connector is not None:
                routed.append(connector)
        return routed

    def build_grid(self, graph: Graph, arrow: Arrow, index: int) -> AccessGrid:
        """Build the access grid for the `index`-th connector (1-based)."""
        obstacles = [
            graph.box_frame(box.id)
            for box in graph.sorted_boxes()
            if box.id not in (arrow.source, arrow.target)
        ]
        grid = AccessGrid.build(
            graph.frame,
            (graph.box_frame(arrow.source), graph.box_frame(arrow.target)),
            obstacles,
            self.cell_side,
            self.margin_step * index,
        )
        logger.debug(
            "Grid for %s -> %s: %dx%d cells", arrow.source, arrow.target, grid.width, grid.height
        )
        return grid

    def route(
        self,
        graph: Graph,
        arrow: Arrow,
        index: int,
        registry: ConnectionPointRegistry,
    ) -> Optional[RoutedConnector]:
        """
        Route one connector.

        Args:
            graph: The solved graph.
            arrow: Connector to route.
            index: 1-based position of the connector in declaration order.
            registry: Connection points claimed so far in this diagram.

        Returns:
            The RoutedConnector, or None if it could not be routed.
        """
        source = graph.box_frame(arrow.source)
        target = graph.box_frame(arrow.target)
        grid = self.build_grid(graph, arrow, index)

        source_cells, target_cells = grid.connection_point_candidates(source, target)
        start = registry.pick(source_cells)
        end = registry.pick(target_cells)
        if start is None or end is None:
            _skip(arrow, "no connection point candidates")
            return None
        logger.debug("Connection points for %s -> %s: %s, %s", arrow.source, arrow.target, start, end)

        path = grid.shortest_path(start, end)
        if path is None:
            _skip(arrow, "no path")
            return None

        trimmed = trim_path(grid, path, source, target)
        if trimmed is None:
            _skip(arrow, "path too short")
            return None
        line_start, interior, line_end = trimmed

        points = orthogonalize(
            [line_start] + [grid.point(cell) for cell in interior] + [line_end],
            departs_horizontally=path[0].y == path[1].y,
            arrives_vertically=path[-1].x == path[-2].x,
        )
        points = simplify(points)
        if len(points) < 2 or any(a == b for a, b in zip(points, points[1:])):
            _skip(arrow, "zero length")
            return None
        source_head = None
        target_head = None
        if arrow.source_head is ArrowHead.FILLED_VEE:
            source_head = arrowhead(points[1], points[0], arrow.line_width)
        if arrow.target_head is ArrowHead.FILLED_VEE:
            target_head = arrowhead(points[-2], points[-1], arrow.line_width)

        return RoutedConnector(arrow, tuple(points), source_head, target_head)


def _skip(arrow: Arrow, reason: str):
    logger.warning("Skipping connector %s -> %s: %s", arrow.source, arrow.target, reason)


def trim_path(
    grid: AccessGrid,
    path: Sequence[Coordinate],
    source: Rectangle,
    target: Rectangle,
) -> Optional[Tuple[Point, List[Coordinate], Point]]:
    """
    Cut a cell path down to the part between the two box edges.

    The line starts where the first step of the path crosses the source
    edge it heads toward, and ends where the last step crosses the target
    edge. Cells on the box side of those crossings are dropped.

    Args:
        grid: Grid the path was found on.
        path: Cells from the source connection point to the target one.
        source: Exact source frame.
        target: Exact target frame.

    Returns:
        (line start, interior cells, line end), or None if the path has
        fewer than two cells.
    """
    if len(path) < 2:
        return None

    first, second = path[0], path[1]
    first_point = grid.point(first)
    tail = list(path[1:])

    if first.x == second.x:
        if first.y < second.y:
            # heading down, crosses the bottom edge
            line_start = Point(first_point.x, source.max_y)
            tail = _drop_while(tail, lambda p: p.y < line_start.y, grid)
        else:
            line_start = Point(first_point.x, source.min_y)
            tail = _drop_while(tail, lambda p: p.y > line_start.y, grid)
    else:
        if first.x < second.x:
            # heading right, crosses the right edge
            line_start = Point(source.max_x, first_point.y)
            tail = _drop_while(tail, lambda p: p.x < line_start.x, grid)
        else:
            line_start = Point(source.min_x, first_point.y)
            tail = _drop_while(tail, lambda p: p.x > line_start.x, grid)

    last, before_last = path[-1], path[-2]
    last_point = grid.point(last)

    if last.x == before_last.x:
        if before_last.y < last.y:
            # arriving downward, crosses the top edge
            line_end = Point(last_point.x, target.min_y)
            tail = _keep_through_last(tail, lambda p: p.y < line_end.y, grid)
        else:
            line_end = Point(last_point.x, target.max_y)
            tail = _keep_through_last(tail, lambda p: p.y > line_end.y, grid)
    else:
        if before_last.x < last.x:
            # arriving rightward, crosses the left edge
            line_end = Point(target.min_x, last_point.y)
            tail = _keep_through_last(tail, lambda p: p.x < line_end.x, grid)
        else:
            line_end = Point(target.max_x, last_point.y)
            tail = _keep_through_last(tail, lambda p: p.x > line_end.x, grid)

    return line_start, tail, line_end


def _drop_while(cells: List[Coordinate], predicate, grid: AccessGrid) -> List[Coordinate]:
    for position, cell in enumerate(cells):
        if not predicate(grid.point(cell)):
            return cells[position:]
    return []


def _keep_through_last(cells: List[Coordinate], predicate, grid: AccessGrid) -> List[Coordinate]:
    for position in range(len(cells) - 1, -1, -1):
        if predicate(grid.point(cells[position])):
            return cells[: position + 1]
    return []


def orthogonalize(
    points: Sequence[Point], departs_horizontally: bool, arrives_vertically: bool
) -> List[Point]:
    """
    Make every segment axis-aligned and drop repeated points.

    Overlapping boxes can leave the trimmed ends off the axis of their
    neighbors. A diagonal first segment gets an elbow that keeps the
    departure axis; any later one gets an elbow that keeps the arrival axis.
    """
    result: List[Point] = []
    for point in points:
        if result and result[-1] == point:
            continue
        if result and result[-1].x != point.x and result[-1].y != point.y:
            previous = result[-1]
            if len(result) == 1:
                horizontal_first = departs_horizontally
            else:
                horizontal_first = arrives_vertically
            if horizontal_first:
                elbow = Point(point.x, previous.y)
            else:
                elbow = Point(previous.x, point.y)
            result.append(elbow)
        result.append(point)
    return result


def simplify(points: Sequence[Point]) -> List[Point]:
    """Merge runs of points sharing an x or a y into one segment each."""
    simplified: List[Point] = []
    for point in points:
        if len(simplified) >= 2:
            previous, before = simplified[-1], simplified[-2]
            if (point.x == previous.x == before.x) or (point.y == previous.y == before.y):
                simplified[-1] = point
                continue
        simplified.append(point)
    return simplified


def arrowhead(previous: Point, tip: Point, line_width: float) -> Optional[Triangle]:
    """
    Filled triangle for a segment ending at `tip`.

    Returns:
        (tip, base corner, base corner), or None unless the segment is
        purely horizontal or vertical.
    """
    length = ARROWHEAD_LENGTH + line_width
    half_width = ARROWHEAD_HALF_WIDTH + line_width

    if previous.x == tip.x and previous.y != tip.y:
        step = length if tip.y < previous.y else -length
        base_y = tip.y + step
        return tip, Point(tip.x - half_width, base_y), Point(tip.x + half_width, base_y)

    if previous.y == tip.y and previous.x != tip.x:
        step = length if tip.x < previous.x else -length
        base_x = tip.x + step
        return tip, Point(base_x, tip.y - half_width), Point(base_x, tip.y + half_width)

    return None
