"""
Diagram model: boxes, arrows, styles and the graph that owns them.

Geometry is never stored on a box. Every box (and the graph itself) owns
eight anchors, each an index into a VariableTable that holds the actual
kiwisolver variables. Frames are read from the table after the solver has
run, so a value can never go stale.

Classes:
    VariableTable: Arena of solver variables addressed by name or index.
    Anchors: The eight anchor indices of a box or of the graph.
    ArrowHead: Supported connector end styles.
    BoxStyle: A named, inheritable set of box appearance properties.
    ResolvedStyle: Concrete appearance values for one box.
    Box: A labelled rectangle.
    Arrow: A directed connector between two boxes.
    Graph: Container for boxes, arrows, styles and graph-level anchors.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional

import kiwisolver

from .geometry import BLACK, Color, Rectangle

ANCHOR_NAMES = (
    "top",
    "centerY",
    "bottom",
    "left",
    "centerX",
    "right",
    "height",
    "width",
)

# Equations refer to the graph by this head; no box may use it as an id.
GRAPH_ID = "graph"

# Solver names for graph anchors are "{graph}.top" and so on. Box ids never
# contain braces, so no box can produce them.
GRAPH_VARIABLE_PREFIX = "{graph}"

DEFAULT_TEXT_COLOR = BLACK
DEFAULT_LINE_WIDTH = 1.0


class VariableTable:
    """
    Owns every solver variable of one diagram.

    Variables are interned by name, so asking twice for "n1.top" yields the
    same index. Callers keep indices, never the variables themselves.
    """

    def __init__(self):
        self._variables: List[kiwisolver.Variable] = []
        self._indices: Dict[str, int] = {}

    def intern(self, name: str) -> int:
        """Return the index for `name`, creating the variable if needed."""
        index = self._indices.get(name)
        if index is None:
            index = len(self._variables)
            self._variables.append(kiwisolver.Variable(name))
            self._indices[name] = index
        return index

    def index_of(self, name: str) -> Optional[int]:
        return self._indices.get(name)

    def variable(self, index: int) -> kiwisolver.Variable:
        return self._variables[index]

    def value(self, index: int) -> float:
        return self._variables[index].value()

    def names(self) -> List[str]:
        return [variable.name() for variable in self._variables]

    def __len__(self) -> int:
        return len(self._variables)


@dataclass(frozen=True)
class Anchors:
    """Indices of the eight anchors of a box or of the graph."""

    top: int
    centerY: int
    bottom: int
    left: int
    centerX: int
    right: int
    height: int
    width: int

    @classmethod
    def create(cls, table: VariableTable, prefix: str) -> "Anchors":
        """Intern `<prefix>.<anchor>` for every anchor name."""
        return cls(**{name: table.intern(f"{prefix}.{name}") for name in ANCHOR_NAMES})

    def index(self, name: str) -> Optional[int]:
        """Look up an anchor by its suffix, or None if it is not an anchor."""
        if name not in ANCHOR_NAMES:
            return None
        return getattr(self, name)

    def frame(self, table: VariableTable) -> Rectangle:
        """Read the solved rectangle. Only meaningful after solving."""
        return Rectangle.from_bounds(
            table.value(self.left),
            table.value(self.top),
            table.value(self.width),
            table.value(self.height),
        )


class ArrowHead(Enum):
    LINE = "line"
    FILLED_VEE = "filled_vee"


@dataclass
class BoxStyle:
    """
    A named set of box appearance properties.

    Attributes:
        id: Unique style id.
        inherits: Parent style ids. Later entries win over earlier ones.
        background_color: Fill color, or None to inherit.
        text_color: Label color, or None to inherit.
        horizontal_padding: Extra width on each side of the label, or None.
    """

    id: str
    inherits: List[str] = field(default_factory=list)
    background_color: Optional[Color] = None
    text_color: Optional[Color] = None
    horizontal_padding: Optional[float] = None

    def has_overrides(self) -> bool:
        return (
            self.background_color is not None
            or self.text_color is not None
            or self.horizontal_padding is not None
        )


@dataclass(frozen=True)
class ResolvedStyle:
    background_color: Optional[Color] = None
    text_color: Color = DEFAULT_TEXT_COLOR
    horizontal_padding: float = 0.0


def resolve_style_property(
    styles: Dict[str, BoxStyle], style_id: Optional[str], attribute: str
):
    """
    Resolve one style property through the inheritance graph.

    A style's own value wins. Otherwise each parent in `inherits` is
    resolved in order and the last non-None answer is kept. Styles already
    on the current inheritance path are skipped, so a cycle resolves as if
    its closing link were absent.

    Args:
        styles: All styles of the graph by id.
        style_id: Style to start from; None resolves to None.
        attribute: BoxStyle attribute name, e.g. "background_color".

    Returns:
        The resolved value, or None if no style on the walk sets it.
    """
    stack: List[_StyleFrame] = []
    value = _enter(styles, style_id, attribute, frozenset(), stack)
    while stack:
        frame = stack[-1]
        if frame.position < len(frame.style.inherits):
            parent_id = frame.style.inherits[frame.position]
            frame.position += 1
            value = _enter(styles, parent_id, attribute, frame.path, stack)
            if value is not None:
                frame.resolved = value
        else:
            stack.pop()
            value = frame.resolved
            if stack and value is not None:
                stack[-1].resolved = value
    return value


@dataclass
class _StyleFrame:
    style: BoxStyle
    path: FrozenSet[str]
    position: int = 0
    resolved: Any = None


def _enter(
    styles: Dict[str, BoxStyle],
    style_id: Optional[str],
    attribute: str,
    path: FrozenSet[str],
    stack: List[_StyleFrame],
):
    """Return the value a style settles on its own, or push a frame for its parents."""
    if style_id is None or style_id in path:
        return None
    style = styles.get(style_id)
    if style is None:
        return None
    own = getattr(style, attribute)
    if own is not None:
        return own
    stack.append(_StyleFrame(style, path | {style_id}))
    return None


@dataclass(frozen=True)
class Box:
    """
    A labelled box.

    Attributes:
        id: Unique box id.
        label: Text drawn centered in the box.
        style_id: Style applied to the box, if any.
        anchors: Solver variable indices for the box geometry.
    """

    id: str
    label: str
    style_id: Optional[str]
    anchors: Anchors


@dataclass(frozen=True)
class Arrow:
    source: str
    target: str
    source_head: ArrowHead = ArrowHead.LINE
    target_head: ArrowHead = ArrowHead.LINE
    line_width: float = DEFAULT_LINE_WIDTH


class Graph:
    """
    A diagram: boxes by id, arrows in declaration order, styles by id.

    Boxes are kept in a dict for lookup; `sorted_boxes` gives the stable
    order used for drawing.
    """

    def __init__(self, variables: Optional[VariableTable] = None):
        self.variables = variables if variables is not None else VariableTable()
        self.anchors = Anchors.create(self.variables, GRAPH_VARIABLE_PREFIX)
        self.boxes: Dict[str, Box] = {}
        self.arrows: List[Arrow] = []
        self.styles: Dict[str, BoxStyle] = {}

    def add_box(self, box_id: str, label: str, style_id: Optional[str] = None) -> Box:
        box = Box(box_id, label, style_id, Anchors.create(self.variables, box_id))
        self.boxes[box_id] = box
        return box

    def add_style(self, style: BoxStyle):
        self.styles[style.id] = style

    def connect(self, arrow: Arrow):
        self.arrows.append(arrow)

    def sorted_boxes(self) -> List[Box]:
        return [self.boxes[box_id] for box_id in sorted(self.boxes)]

    @property
    def frame(self) -> Rectangle:
        return self.anchors.frame(self.variables)

    def box_frame(self, box_id: str) -> Rectangle:
        return self.boxes[box_id].anchors.frame(self.variables)

    def resolved_style(self, box: Box) -> ResolvedStyle:
        """Resolve all appearance properties for a box, applying defaults."""
        text_color = resolve_style_property(self.styles, box.style_id, "text_color")
        padding = resolve_style_property(self.styles, box.style_id, "horizontal_padding")
        return ResolvedStyle(
            background_color=resolve_style_property(
                self.styles, box.style_id, "background_color"
            ),
            text_color=text_color if text_color is not None else DEFAULT_TEXT_COLOR,
            horizontal_padding=padding if padding is not None else 0.0,
        )
