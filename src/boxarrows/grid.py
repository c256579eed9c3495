"""
Access grid for connector routing.

The graph frame is tiled into square cells. Each cell records, for each of
the four directions, whether a connector may step from it into the
neighboring cell. Shortest paths over the grid are found with networkx.

Cells are addressed by integer Coordinate(x, y); cell (0, 0) covers the
graph origin, and cell (x, y) spans [x * side, (x + 1) * side) along x.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Set, Tuple

import networkx as nx

from .geometry import Point, Rectangle

logger = logging.getLogger(__name__)


class Direction(Enum):
    """Step direction on the grid; y grows downward."""

    UP = (0, -1)
    RIGHT = (1, 0)
    DOWN = (0, 1)
    LEFT = (-1, 0)


# Order in which neighbors are offered to the path search.
NEIGHBOR_ORDER = (Direction.LEFT, Direction.RIGHT, Direction.UP, Direction.DOWN)


@dataclass(frozen=True, order=True)
class Coordinate:
    x: int
    y: int

    def neighbor(self, direction: Direction) -> "Coordinate":
        dx, dy = direction.value
        return Coordinate(self.x + dx, self.y + dy)


@dataclass
class Access:
    """Passability of one cell in each direction."""

    up: bool = False
    right: bool = False
    down: bool = False
    left: bool = False

    def allows(self, direction: Direction) -> bool:
        return getattr(self, direction.name.lower())


class ConnectionPointRegistry:
    """
    Tracks which cells are already used as connector end points.

    One registry is shared by every connector of a diagram, so connectors
    that touch the same box spread over distinct cells where possible.
    """

    def __init__(self):
        self.used: Set[Coordinate] = set()

    def pick(self, candidates: Sequence[Coordinate]) -> Optional[Coordinate]:
        """
        Claim the first unused candidate.

        Falls back to the first candidate when all are taken, and returns
        None only when there are no candidates at all.
        """
        for candidate in candidates:
            if candidate not in self.used:
                self.used.add(candidate)
                return candidate
        return candidates[0] if candidates else None


def escape_directions(frame: Rectangle, center: Point) -> Tuple[Direction, Direction]:
    """
    Pick the two fastest ways out of `frame` from `center`.

    Directions are ranked by distance to the corresponding edge; on a tie
    the direction crossing the longer edge wins.
    """
    ranked = sorted(
        [
            (Direction.UP, center.y - frame.min_y, frame.width),
            (Direction.DOWN, frame.max_y - center.y, frame.width),
            (Direction.LEFT, center.x - frame.min_x, frame.height),
            (Direction.RIGHT, frame.max_x - center.x, frame.height),
        ],
        key=lambda entry: (entry[1], -entry[2]),
    )
    return ranked[0][0], ranked[1][0]


class AccessGrid:
    """
    Dense grid of Access cells stored row by row.

    Attributes:
        width: Number of cells along x.
        height: Number of cells along y.
        cell_side: Side of a cell in diagram units.
        cells: Access per cell, index `y * width + x`.
    """

    def __init__(self, width: int, height: int, cell_side: int, cells: Optional[List[Access]] = None):
        self.width = width
        self.height = height
        self.cell_side = cell_side
        self.cells = cells if cells is not None else [Access() for _ in range(width * height)]

    @classmethod
    def build(
        cls,
        frame: Rectangle,
        endpoints: Sequence[Rectangle],
        obstacles: Sequence[Rectangle],
        cell_side: int,
        margin: float,
    ) -> "AccessGrid":
        """
        Build the grid for one connector.

        Args:
            frame: Graph frame; its origin is the grid origin.
            endpoints: Exact frames of the connector's source and target.
                Cells inside them may always step out the fastest way.
            obstacles: Frames of every other box.
            cell_side: Cell side in diagram units.
            margin: Amount each obstacle is grown by before testing.

        Returns:
            The populated grid.
        """
        width = max(0, math.ceil(frame.width / cell_side))
        height = max(0, math.ceil(frame.height / cell_side))
        grid = cls(width, height, cell_side)
        grown = [obstacle.inset_by(-margin) for obstacle in obstacles]

        def blocked(rect: Rectangle) -> bool:
            return any(obstacle.intersects(rect) for obstacle in grown)

        def inside(rect: Rectangle) -> bool:
            return any(obstacle.contains(rect) for obstacle in grown)

        for y in range(height):
            for x in range(width):
                coordinate = Coordinate(x, y)
                cell = grid.cell_rect(coordinate)
                escapes: Tuple[Direction, ...] = ()
                for endpoint in endpoints:
                    if endpoint.contains(cell):
                        escapes = escape_directions(endpoint, cell.center)
                        break
                cell_inside = inside(cell)

                access = grid[coordinate]
                for direction in Direction:
                    neighbor = coordinate.neighbor(direction)
                    if not grid.in_bounds(neighbor):
                        allowed = False
                    elif direction in escapes:
                        allowed = True
                    else:
                        neighbor_cell = grid.cell_rect(neighbor)
                        allowed = (cell_inside and not inside(neighbor_cell)) or not blocked(
                            neighbor_cell
                        )
                    setattr(access, direction.name.lower(), allowed)

        return grid

    def __getitem__(self, coordinate: Coordinate) -> Access:
        return self.cells[self.index(coordinate)]

    def index(self, coordinate: Coordinate) -> int:
        return coordinate.y * self.width + coordinate.x

    def in_bounds(self, coordinate: Coordinate) -> bool:
        return 0 <= coordinate.x < self.width and 0 <= coordinate.y < self.height

    def cell_rect(self, coordinate: Coordinate) -> Rectangle:
        side = self.cell_side
        return Rectangle.from_bounds(coordinate.x * side, coordinate.y * side, side, side)

    def point(self, coordinate: Coordinate) -> Point:
        """Center of a cell in diagram units."""
        return self.cell_rect(coordinate).center

    def coordinates_in(self, rect: Rectangle) -> List[Coordinate]:
        """
        Cells covering `rect`, column by column.

        Starts at the first cell boundary at or after the rectangle's
        top-left corner and spans as many whole cells as fit the size.
        """
        side = float(self.cell_side)
        top = math.ceil(rect.min_y / side)
        left = math.ceil(rect.min_x / side)
        columns = math.floor(rect.width / side)
        rows = math.floor(rect.height / side)
        return [
            Coordinate(left + column, top + row)
            for column in range(columns)
            for row in range(rows)
        ]

    def neighbors(self, coordinate: Coordinate) -> List[Coordinate]:
        access = self[coordinate]
        return [
            coordinate.neighbor(direction)
            for direction in NEIGHBOR_ORDER
            if access.allows(direction)
        ]

    def connection_point_candidates(
        self, source: Rectangle, target: Rectangle
    ) -> Tuple[List[Coordinate], List[Coordinate]]:
        """
        Candidate end point cells for a connector from `source` to `target`.

        Overlapping rectangles get every covering cell. Otherwise each set
        is narrowed to the column or row of cells on the side facing the
        other rectangle.

        Returns:
            (source candidates, target candidates)
        """
        source_cells = self.coordinates_in(source)
        target_cells = self.coordinates_in(target)

        if source.intersects(target) or not source_cells or not target_cells:
            return source_cells, target_cells

        if target.min_x > source.max_x:
            # [source] [target]
            source_cells = _keep(source_cells, "x", max)
            target_cells = _keep(target_cells, "x", min)

        if target.max_x < source.min_x:
            # [target] [source]
            source_cells = _keep(source_cells, "x", min)
            target_cells = _keep(target_cells, "x", max)

        if target.min_y > source.max_y:
            # source above target
            source_cells = _keep(source_cells, "y", max)
            target_cells = _keep(target_cells, "y", min)

        if target.max_y < source.min_y:
            # target above source
            source_cells = _keep(source_cells, "y", min)
            target_cells = _keep(target_cells, "y", max)

        return source_cells, target_cells

    def to_networkx(self) -> nx.DiGraph:
        """One node per cell, one unit-weight edge per allowed step."""
        graph = nx.DiGraph()
        for y in range(self.height):
            for x in range(self.width):
                graph.add_node(Coordinate(x, y))
        for y in range(self.height):
            for x in range(self.width):
                coordinate = Coordinate(x, y)
                for neighbor in self.neighbors(coordinate):
                    graph.add_edge(coordinate, neighbor, weight=1)
        return graph

    def shortest_path(self, start: Coordinate, end: Coordinate) -> Optional[List[Coordinate]]:
        """
        Dijkstra shortest path from `start` to `end`.

        Returns:
            The cells from start to end inclusive, `[start]` if they
            coincide, or None if `end` cannot be reached.
        """
        graph = self.to_networkx()
        try:
            path = nx.shortest_path(graph, start, end, weight="weight", method="dijkstra")
        except (nx.NetworkXNoPath, nx.NodeNotFound):
            logger.debug("No path from %s to %s on %dx%d grid", start, end, self.width, self.height)
            return None
        logger.debug("Path from %s to %s has %d cells", start, end, len(path))
        return path

    def picture(self) -> str:
        """
        Render passability as box-drawing text.

        Each cell is drawn as a small box labelled with its x and y. Dotted
        sides are passable, heavy sides are not.
        """
        digits = max(len(str(self.width)), len(str(self.height)))
        inner = digits + 2
        lines: List[str] = []

        for y in range(self.height):
            row = [self[Coordinate(x, y)] for x in range(self.width)]
            lines.append(
                "".join("┌" + ("┄" if cell.up else "━") * inner + "┐" for cell in row)
            )
            for value in ("x", "y"):
                lines.append(
                    "".join(
                        ("┆" if cell.left else "┃")
                        + f" {str(x if value == 'x' else y).rjust(digits)} "
                        + ("┆" if cell.right else "┃")
                        for x, cell in enumerate(row)
                    )
                )
            lines.append(
                "".join("└" + ("┄" if cell.down else "━") * inner + "┘" for cell in row)
            )

        return "".join(line + "\n" for line in lines)


def _keep(coordinates: List[Coordinate], axis: str, pick) -> List[Coordinate]:
    """Keep only the coordinates whose `axis` equals its min or max."""
    edge = pick(getattr(coordinate, axis) for coordinate in coordinates)
    return [coordinate for coordinate in coordinates if getattr(coordinate, axis) == edge]
