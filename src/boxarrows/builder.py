"""
Diagram model builder.

Consumes parsed declarations and produces a Graph plus the list of user
equations. All cross references (style ids, box ids, arrowhead names) are
checked here, and fields are checked against the construct they appear on.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from .equation import Equation
from .errors import DuplicateDefinitionError, UndefinedReferenceError, UnsupportedFieldError
from .model import DEFAULT_LINE_WIDTH, GRAPH_ID, Arrow, ArrowHead, BoxStyle, Graph
from .parser import (
    BlockComment,
    BlockField,
    BoxDeclaration,
    BoxStyleDeclaration,
    ColorField,
    ColorFieldID,
    CommentDeclaration,
    ConnectDeclaration,
    ConstraintDeclaration,
    Declaration,
    NumericField,
    NumericFieldID,
    StringField,
    VariableField,
    VariableFieldID,
)

logger = logging.getLogger(__name__)

ARROW_HEADS: Dict[str, ArrowHead] = {head.value: head for head in ArrowHead}


def box_style_id(box_id: str) -> str:
    """Id of the style synthesized from a box's own appearance fields."""
    return f"box{{{box_id}}}"


@dataclass
class BuildResult:
    """
    Output of the model builder.

    Attributes:
        graph: Boxes, arrows and styles.
        equations: User `constrain` equations in declaration order.
    """

    graph: Graph
    equations: List[Equation]


class ModelBuilder:
    """Builds a Graph from declarations."""

    def build(self, declarations: Sequence[Declaration]) -> BuildResult:
        """
        Build the diagram model.

        Args:
            declarations: Parsed declarations in source order.

        Returns:
            BuildResult with the graph and the user equations.

        Raises:
            DuplicateDefinitionError: If a box or style id repeats, or a box
                is named after the graph sentinel.
            UndefinedReferenceError: On the first unknown style, box or
                arrowhead name.
            UnsupportedFieldError: If a field is not legal on its construct.
        """
        style_decls: Dict[str, BoxStyleDeclaration] = {}
        box_decls: Dict[str, BoxDeclaration] = {}
        connect_decls: List[ConnectDeclaration] = []
        equations: List[Equation] = []

        for declaration in declarations:
            if isinstance(declaration, BoxStyleDeclaration):
                if declaration.name in style_decls:
                    raise DuplicateDefinitionError(declaration.name)
                style_decls[declaration.name] = declaration
            elif isinstance(declaration, BoxDeclaration):
                if declaration.name == GRAPH_ID:
                    raise DuplicateDefinitionError(
                        declaration.name, "is reserved for the graph"
                    )
                if declaration.name in box_decls:
                    raise DuplicateDefinitionError(declaration.name)
                box_decls[declaration.name] = declaration
            elif isinstance(declaration, ConnectDeclaration):
                connect_decls.append(declaration)
            elif isinstance(declaration, ConstraintDeclaration):
                equations.append(declaration.equation)
            elif not isinstance(declaration, CommentDeclaration):
                raise TypeError(f"Unknown declaration {declaration!r}")

        graph = Graph()

        for declaration in style_decls.values():
            graph.add_style(self._box_style(declaration))
        for style in list(graph.styles.values()):
            for parent_id in style.inherits:
                if parent_id not in graph.styles:
                    raise UndefinedReferenceError(parent_id, "style")

        for declaration in box_decls.values():
            self._add_box(graph, declaration)

        for declaration in connect_decls:
            graph.connect(self._arrow(graph, declaration))

        logger.debug(
            "Built %d boxes, %d arrows, %d styles, %d equations",
            len(graph.boxes),
            len(graph.arrows),
            len(graph.styles),
            len(equations),
        )
        return BuildResult(graph, equations)

    def _box_style(self, declaration: BoxStyleDeclaration) -> BoxStyle:
        context = f"box-style '{declaration.name}'"
        style = BoxStyle(declaration.name)
        for block_field in declaration.fields:
            if isinstance(block_field, VariableField) and block_field.field_id is VariableFieldID.STYLE:
                style.inherits.append(block_field.value)
            elif not _apply_appearance(style, block_field):
                _reject(block_field, context)
        return style

    def _add_box(self, graph: Graph, declaration: BoxDeclaration):
        context = f"box '{declaration.name}'"
        overrides = BoxStyle(box_style_id(declaration.name))
        parent_id: Optional[str] = None
        label: Optional[str] = None

        for block_field in declaration.fields:
            if isinstance(block_field, StringField):
                label = block_field.value
            elif isinstance(block_field, VariableField) and block_field.field_id is VariableFieldID.STYLE:
                if block_field.value not in graph.styles:
                    raise UndefinedReferenceError(block_field.value, "style")
                parent_id = block_field.value
            elif not _apply_appearance(overrides, block_field):
                _reject(block_field, context)

        style_id = parent_id
        if overrides.has_overrides():
            if parent_id is not None:
                overrides.inherits.append(parent_id)
            graph.add_style(overrides)
            style_id = overrides.id

        graph.add_box(declaration.name, label if label is not None else declaration.name, style_id)

    def _arrow(self, graph: Graph, declaration: ConnectDeclaration) -> Arrow:
        for box_id in (declaration.source, declaration.target):
            if box_id not in graph.boxes:
                raise UndefinedReferenceError(box_id, "box")

        context = f"connect '{declaration.source}' '{declaration.target}'"
        heads = {VariableFieldID.HEAD1: ArrowHead.LINE, VariableFieldID.HEAD2: ArrowHead.LINE}
        line_width = DEFAULT_LINE_WIDTH

        for block_field in declaration.fields:
            if isinstance(block_field, BlockComment):
                continue
            if isinstance(block_field, NumericField) and block_field.field_id is NumericFieldID.LINE_WIDTH:
                line_width = block_field.value
            elif isinstance(block_field, VariableField) and block_field.field_id in heads:
                head = ARROW_HEADS.get(block_field.value)
                if head is None:
                    raise UndefinedReferenceError(block_field.value, "arrowhead")
                heads[block_field.field_id] = head
            else:
                _reject(block_field, context)

        return Arrow(
            source=declaration.source,
            target=declaration.target,
            source_head=heads[VariableFieldID.HEAD1],
            target_head=heads[VariableFieldID.HEAD2],
            line_width=line_width,
        )


def _apply_appearance(style: BoxStyle, block_field: BlockField) -> bool:
    """Copy a color or padding field onto `style`; False if not applicable."""
    if isinstance(block_field, BlockComment):
        return True
    if isinstance(block_field, ColorField):
        if block_field.field_id is ColorFieldID.BACKGROUND_COLOR:
            style.background_color = block_field.value
        else:
            style.text_color = block_field.value
        return True
    if isinstance(block_field, NumericField) and block_field.field_id is NumericFieldID.HORIZONTAL_PADDING:
        style.horizontal_padding = block_field.value
        return True
    return False


def _reject(block_field: BlockField, context: str):
    raise UnsupportedFieldError(block_field.field_id.value, context)


def build_model(declarations: Sequence[Declaration]) -> BuildResult:
    """Convenience function to build a model from declarations."""
    return ModelBuilder().build(declarations)
