"""
Parser module for diagram specs.

Turns spec text into an ordered list of declarations:

    box-style style1 { background-color: #aabbcc; text-color: black }

    // comment
    box box1 {
        label: "Hello"
        style: style1
    }
    box box2

    connect box1 box2 { head1: line; head2: filled_vee }

    constrain box1.top == box2.top
    constrain box2.left == box1.right + 100.0

Fields inside braces end with `;`, a newline or the closing brace. The
parser only checks syntax; whether a field is legal on a given construct is
decided later by the model builder, so a purely syntactic consumer can
round-trip any well-formed file with `format_declarations`.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union

from .equation import Equation, LineComment, parse_equation
from .errors import EquationFormatError, ParseError
from .geometry import NAMED_COLORS, Color

logger = logging.getLogger(__name__)


class ColorFieldID(Enum):
    BACKGROUND_COLOR = "background-color"
    TEXT_COLOR = "text-color"


class NumericFieldID(Enum):
    LINE_WIDTH = "line-width"
    HORIZONTAL_PADDING = "horizontal-padding"


class StringFieldID(Enum):
    LABEL = "label"


class VariableFieldID(Enum):
    HEAD1 = "head1"
    HEAD2 = "head2"
    STYLE = "style"


@dataclass(frozen=True)
class ColorField:
    field_id: ColorFieldID
    value: Color


@dataclass(frozen=True)
class NumericField:
    field_id: NumericFieldID
    value: float


@dataclass(frozen=True)
class StringField:
    field_id: StringFieldID
    value: str


@dataclass(frozen=True)
class VariableField:
    """A field whose value is a bare identifier, e.g. `style: style1`."""

    field_id: VariableFieldID
    value: str


@dataclass(frozen=True)
class BlockComment:
    """A `//` comment line inside a block."""

    text: str


BlockField = Union[ColorField, NumericField, StringField, VariableField, BlockComment]


@dataclass(frozen=True)
class BoxStyleDeclaration:
    name: str
    fields: Tuple[BlockField, ...] = ()
    end_of_line: Optional[LineComment] = None


@dataclass(frozen=True)
class BoxDeclaration:
    name: str
    fields: Tuple[BlockField, ...] = ()
    end_of_line: Optional[LineComment] = None


@dataclass(frozen=True)
class ConnectDeclaration:
    source: str
    target: str
    fields: Tuple[BlockField, ...] = ()
    end_of_line: Optional[LineComment] = None


@dataclass(frozen=True)
class ConstraintDeclaration:
    equation: Equation


@dataclass(frozen=True)
class CommentDeclaration:
    comment: LineComment


Declaration = Union[
    BoxStyleDeclaration,
    BoxDeclaration,
    ConnectDeclaration,
    ConstraintDeclaration,
    CommentDeclaration,
]

_FIELD_IDS = {
    **{field_id.value: field_id for field_id in ColorFieldID},
    **{field_id.value: field_id for field_id in NumericFieldID},
    **{field_id.value: field_id for field_id in StringFieldID},
    **{field_id.value: field_id for field_id in VariableFieldID},
}

_NAME = re.compile(r"[^\s{};]+")
_FIELD_KEY = re.compile(r"[A-Za-z][A-Za-z0-9_-]*")
_NUMBER = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_BARE_VALUE = re.compile(r"[^\s;}]+")
_HEX_DIGITS = re.compile(r"[0-9A-Fa-f]+")


def parse_color(text: str) -> Optional[Color]:
    """
    Parse a color value.

    Accepts `#RGB`, `#RGBA`, `#RRGGBB`, `#RRGGBBAA` and the named colors
    clear, black, white, red, green, blue, yellow, cyan and magenta.

    Returns:
        The Color, or None if the text is not a color.
    """
    if text.lower() in NAMED_COLORS:
        return NAMED_COLORS[text.lower()]
    if not text.startswith("#"):
        return None
    digits = text[1:]
    if not _HEX_DIGITS.fullmatch(digits) or len(digits) not in (3, 4, 6, 8):
        return None
    if len(digits) in (3, 4):
        digits = "".join(digit * 2 for digit in digits)
    if len(digits) == 6:
        digits += "FF"
    red, green, blue, alpha = (int(digits[i : i + 2], 16) for i in range(0, 8, 2))
    return Color.from_bytes(red, green, blue, alpha)


class Parser:
    """Parses spec text into declarations."""

    def __init__(self):
        self._text = ""
        self._position = 0

    def parse(self, input_text: str) -> List[Declaration]:
        """
        Parse spec text.

        Args:
            input_text: The whole spec.

        Returns:
            Declarations in source order.

        Raises:
            ParseError: At the first malformed construct, with its line and
                column.
            EquationFormatError: If a `constrain` equation is malformed.
        """
        self._text = input_text
        self._position = 0
        declarations: List[Declaration] = []

        self._skip_whitespace()
        while not self._at_end():
            declarations.append(self._declaration())
            self._skip_whitespace()

        logger.debug("Parsed %d declarations", len(declarations))
        return declarations

    # -- top level ---------------------------------------------------------

    def _declaration(self) -> Declaration:
        if self._startswith("//"):
            return CommentDeclaration(self._line_comment())

        if self._keyword("box-style"):
            name = self._name()
            self._skip_horizontal()
            fields = self._block()
            return BoxStyleDeclaration(name, fields, self._end_of_line())

        if self._keyword("box"):
            name = self._name()
            self._skip_horizontal()
            fields: Tuple[BlockField, ...] = ()
            if self._startswith("{"):
                fields = self._block()
            return BoxDeclaration(name, fields, self._end_of_line())

        if self._keyword("connect"):
            source = self._name()
            self._skip_horizontal()
            target = self._name()
            self._skip_horizontal()
            fields = self._block()
            return ConnectDeclaration(source, target, fields, self._end_of_line())

        if self._keyword("constrain"):
            return ConstraintDeclaration(self._equation())

        raise self._error("Expected 'box-style', 'box', 'connect', 'constrain' or a comment")

    def _keyword(self, word: str) -> bool:
        end = self._position + len(word)
        if not self._text.startswith(word, self._position):
            return False
        if end < len(self._text) and not self._text[end].isspace():
            return False
        self._position = end
        self._skip_horizontal()
        return True

    def _name(self) -> str:
        match = _NAME.match(self._text, self._position)
        if not match:
            raise self._error("Expected a name")
        self._position = match.end()
        return match.group()

    def _end_of_line(self) -> Optional[LineComment]:
        self._skip_horizontal()
        comment = None
        if self._startswith("//"):
            comment = self._line_comment()
        elif not self._at_end() and self._text[self._position] != "\n":
            raise self._error("Expected end of line")
        return comment

    def _line_comment(self) -> LineComment:
        self._position += 2
        end = self._text.find("\n", self._position)
        if end == -1:
            end = len(self._text)
        text = self._text[self._position : end]
        self._position = end
        return LineComment(text.rstrip("\r"))

    def _equation(self) -> Equation:
        start = self._position
        end = self._text.find("\n", start)
        if end == -1:
            end = len(self._text)
        line, column = self._location(start)
        try:
            equation = parse_equation(self._text[start:end])
        except EquationFormatError as err:
            raise EquationFormatError(err.reason, err.parts, line, column) from err
        self._position = end
        return equation

    # -- blocks ------------------------------------------------------------

    def _block(self) -> Tuple[BlockField, ...]:
        if not self._startswith("{"):
            raise self._error("Expected '{'")
        self._position += 1
        fields: List[BlockField] = []

        while True:
            self._skip_whitespace()
            if self._at_end():
                raise self._error("Unterminated block, expected '}'")
            if self._startswith("}"):
                self._position += 1
                return tuple(fields)
            if self._startswith("//"):
                fields.append(BlockComment(self._line_comment().text))
                continue

            fields.append(self._field())

            self._skip_horizontal()
            if self._startswith(";"):
                self._position += 1
            elif not (
                self._at_end()
                or self._startswith("\n")
                or self._startswith("}")
                or self._startswith("//")
            ):
                raise self._error("Expected ';' or end of line after field")

    def _field(self) -> BlockField:
        match = _FIELD_KEY.match(self._text, self._position)
        if not match:
            raise self._error("Expected a field name")
        field_id = _FIELD_IDS.get(match.group())
        if field_id is None:
            raise self._error(f"Unknown field '{match.group()}'")
        self._position = match.end()

        self._skip_horizontal()
        if not self._startswith(":"):
            raise self._error("Expected ':' after field name")
        self._position += 1
        self._skip_horizontal()

        if isinstance(field_id, ColorFieldID):
            return ColorField(field_id, self._color())
        if isinstance(field_id, NumericFieldID):
            return NumericField(field_id, self._number())
        if isinstance(field_id, StringFieldID):
            return StringField(field_id, self._quoted())
        return VariableField(field_id, self._bare_value())

    def _color(self) -> Color:
        token = self._bare_value()
        color = parse_color(token)
        if color is None:
            self._position -= len(token)
            raise self._error(f"Invalid color '{token}'")
        return color

    def _number(self) -> float:
        match = _NUMBER.match(self._text, self._position)
        if not match:
            raise self._error("Expected a number")
        self._position = match.end()
        return float(match.group())

    def _quoted(self) -> str:
        if not self._startswith('"'):
            raise self._error("Expected '\"'")
        self._position += 1
        chars = []
        while not self._at_end():
            char = self._text[self._position]
            if char == '"':
                self._position += 1
                return "".join(chars)
            if char == "\\":
                if self._position + 1 >= len(self._text):
                    break
                self._position += 1
                char = self._text[self._position]
            chars.append(char)
            self._position += 1
        raise self._error("Unterminated string")

    def _bare_value(self) -> str:
        match = _BARE_VALUE.match(self._text, self._position)
        if not match:
            raise self._error("Expected a value")
        self._position = match.end()
        return match.group()

    # -- scanning helpers --------------------------------------------------

    def _at_end(self) -> bool:
        return self._position >= len(self._text)

    def _startswith(self, prefix: str) -> bool:
        return self._text.startswith(prefix, self._position)

    def _skip_horizontal(self):
        while not self._at_end() and self._text[self._position] in " \t\r":
            self._position += 1

    def _skip_whitespace(self):
        while not self._at_end() and self._text[self._position].isspace():
            self._position += 1

    def _location(self, position: int) -> Tuple[int, int]:
        line = self._text.count("\n", 0, position) + 1
        column = position - (self._text.rfind("\n", 0, position) + 1) + 1
        return line, column

    def _error(self, message: str) -> ParseError:
        line, column = self._location(self._position)
        return ParseError(message, line, column)


def parse_spec(input_text: str) -> List[Declaration]:
    """
    Convenience function to parse spec text.

    Args:
        input_text: The whole spec.

    Returns:
        Declarations in source order.
    """
    return Parser().parse(input_text)


def format_declarations(declarations: Sequence[Declaration]) -> str:
    """Render declarations back to spec text that re-parses to equal values."""
    return "".join(format_declaration(declaration) + "\n" for declaration in declarations)


def format_declaration(declaration: Declaration) -> str:
    if isinstance(declaration, BoxStyleDeclaration):
        text = f"box-style {declaration.name} {format_block(declaration.fields)}"
    elif isinstance(declaration, BoxDeclaration):
        text = f"box {declaration.name}"
        if declaration.fields:
            text += f" {format_block(declaration.fields)}"
    elif isinstance(declaration, ConnectDeclaration):
        text = (
            f"connect {declaration.source} {declaration.target} "
            f"{format_block(declaration.fields)}"
        )
    elif isinstance(declaration, ConstraintDeclaration):
        return f"constrain {declaration.equation}"
    else:
        return str(declaration.comment)

    if declaration.end_of_line is not None:
        text += f" {declaration.end_of_line}"
    return text


def format_block(fields: Sequence[BlockField]) -> str:
    if not fields:
        return "{}"
    rendered = [format_field(field) for field in fields]
    if any(isinstance(field, BlockComment) for field in fields):
        return "{\n" + "".join(f"    {line}\n" for line in rendered) + "}"
    return "{ " + "; ".join(rendered) + " }"


def format_field(field: BlockField) -> str:
    if isinstance(field, BlockComment):
        return f"//{field.text}"
    if isinstance(field, ColorField):
        value = field.value.hex()
    elif isinstance(field, NumericField):
        value = repr(field.value)
    elif isinstance(field, StringField):
        escaped = field.value.replace("\\", "\\\\").replace('"', '\\"')
        value = f'"{escaped}"'
    else:
        value = field.value
    return f"{field.field_id.value}: {value}"
