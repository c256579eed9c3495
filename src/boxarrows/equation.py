"""
Equation parser for `constrain` declarations.

An equation is a flat stream of terms (constants and dotted identifiers),
operators (+ - * /), exactly one relation (< <= == >= >) and an optional
trailing `//` comment. Parsing happens in two passes:

1. Tokenizing: the text is split into raw tokens.
2. Validation: tokens are split at the relation into a left and a right
   side; each side must alternate term/operator/term and must fold into a
   linear value (see `reduce_side`).

There is no operator precedence. Each side folds strictly left to right,
so `a.left + 2 * 3` means `(a.left + 2) * 3`.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence, Tuple, Union

from .errors import EquationFormatError


class Relation(Enum):
    """Relation between the two sides of an equation."""

    LT = "<"
    LTE = "<="
    EQ = "=="
    GTE = ">="
    GT = ">"

    def __str__(self) -> str:
        return self.value


class Operation(Enum):
    """Arithmetic operator between two terms."""

    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Variable:
    """
    A dotted identifier such as `box1.left`.

    Attributes:
        head: The first segment, naming a box or the graph.
        tail: The remaining segments; a valid anchor reference has exactly one.
    """

    head: str
    tail: Tuple[str, ...] = ()

    def __str__(self) -> str:
        return ".".join((self.head,) + self.tail)


@dataclass(frozen=True)
class Constant:
    value: float

    def __str__(self) -> str:
        return repr(self.value)


@dataclass(frozen=True)
class Operator:
    operation: Operation

    def __str__(self) -> str:
        return str(self.operation)


@dataclass(frozen=True)
class LineComment:
    """Text following `//`, without the slashes."""

    text: str

    def __str__(self) -> str:
        return f"//{self.text}"


Term = Union[Variable, Operator, Constant]
Token = Union[Variable, Operator, Constant, Relation, LineComment]


@dataclass(frozen=True)
class Equation:
    """
    A validated equation split at its relation.

    Attributes:
        relation: The single relation of the equation.
        left: Terms and operators left of the relation.
        right: Terms and operators right of the relation.
        line_comment: Trailing comment, if any.
    """

    relation: Relation
    left: Tuple[Term, ...]
    right: Tuple[Term, ...]
    line_comment: Optional[LineComment] = None

    def tokens(self) -> Tuple[Token, ...]:
        tokens: Tuple[Token, ...] = self.left + (self.relation,) + self.right
        if self.line_comment is not None:
            tokens += (self.line_comment,)
        return tokens

    def __str__(self) -> str:
        return " ".join(str(token) for token in self.tokens())


# Longest spellings first so "<=" is not read as "<" followed by "=".
_RELATIONS = (
    ("<=", Relation.LTE),
    (">=", Relation.GTE),
    ("==", Relation.EQ),
    ("≤", Relation.LTE),
    ("≥", Relation.GTE),
    ("<", Relation.LT),
    (">", Relation.GT),
    ("=", Relation.EQ),
)

_OPERATIONS = {operation.value: operation for operation in Operation}

_NUMBER = re.compile(r"(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_SIGNED_NUMBER = re.compile(r"[+-](?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_IDENTIFIER = re.compile(
    r"[^\s.+\-*/<>=≤≥\d][^\s.+*/<>=≤≥]*"
    r"(?:\.[^\s.+*/<>=≤≥]+)*"
)


def tokenize_equation(text: str) -> List[Token]:
    """
    Split equation text into raw tokens.

    A sign directly attached to a number is read as part of the number only
    where a term is expected (at the start, or after an operator or the
    relation); elsewhere it is an operator.

    Args:
        text: Equation source, e.g. `n1.left == n2.right + 30.0 // note`.

    Returns:
        The token list, ending with a LineComment if one is present.

    Raises:
        EquationFormatError: On a character that starts no token.
    """
    tokens: List[Token] = []
    position = 0
    length = len(text)

    while position < length:
        char = text[position]
        if char.isspace():
            position += 1
            continue

        if text.startswith("//", position):
            tokens.append(LineComment(text[position + 2 :].split("\n", 1)[0]))
            break

        relation = _match_relation(text, position)
        if relation is not None:
            spelling, value = relation
            tokens.append(value)
            position += len(spelling)
            continue

        expects_term = not tokens or not isinstance(tokens[-1], (Variable, Constant))
        if expects_term and char in "+-":
            match = _SIGNED_NUMBER.match(text, position)
            if match:
                tokens.append(Constant(float(match.group())))
                position = match.end()
                continue

        if char in _OPERATIONS:
            tokens.append(Operator(_OPERATIONS[char]))
            position += 1
            continue

        match = _NUMBER.match(text, position)
        if match:
            tokens.append(Constant(float(match.group())))
            position = match.end()
            continue

        match = _IDENTIFIER.match(text, position)
        if match:
            head, *tail = match.group().split(".")
            tokens.append(Variable(head, tuple(tail)))
            position = match.end()
            continue

        raise EquationFormatError(
            f"Unexpected character {char!r} at offset {position}", tokens
        )

    return tokens


def _match_relation(text: str, position: int) -> Optional[Tuple[str, Relation]]:
    for spelling, relation in _RELATIONS:
        if text.startswith(spelling, position):
            return spelling, relation
    return None


def _can_follow(previous: Term, part: Term) -> bool:
    """Terms and operators strictly alternate."""
    return isinstance(previous, Operator) != isinstance(part, Operator)


def parse_equation(text: str) -> Equation:
    """
    Parse and validate one equation.

    Args:
        text: Equation source.

    Returns:
        The validated Equation.

    Raises:
        EquationFormatError: If the text is not a single linear relation.
    """
    return equation_from_tokens(tokenize_equation(text))


def equation_from_tokens(tokens: Sequence[Token]) -> Equation:
    """
    Split a token stream at its relation and validate both sides.

    Raises:
        EquationFormatError: On a second relation, a comment before the
            relation, adjacent terms or operators, an empty side, or a side
            that does not reduce to a linear value.
    """
    relation: Optional[Relation] = None
    left: List[Term] = []
    right: List[Term] = []
    line_comment: Optional[LineComment] = None

    for token in tokens:
        if isinstance(token, Relation):
            if relation is not None:
                raise EquationFormatError("More than one relation", tokens)
            relation = token
            continue

        if isinstance(token, LineComment):
            if relation is None:
                raise EquationFormatError("Comment before relation", tokens)
            line_comment = token
            break

        side = left if relation is None else right
        if side and not _can_follow(side[-1], token):
            raise EquationFormatError("Terms and operators must alternate", tokens)
        side.append(token)

    if relation is None:
        raise EquationFormatError("Missing relation", tokens)
    if not left or not right:
        raise EquationFormatError("Both sides of the relation must be non-empty", tokens)

    reduce_side(left)
    reduce_side(right)

    return Equation(relation, tuple(left), tuple(right), line_comment)


class _Fold(Enum):
    INITIAL = "initial"
    CONSTANT = "constant"
    CONSTANT_OP = "constant-op"
    TERM = "term"
    TERM_OP = "term-op"
    EXPRESSION = "expression"
    EXPRESSION_OP = "expression-op"


_AFTER_OPERATOR = {
    _Fold.CONSTANT: _Fold.CONSTANT_OP,
    _Fold.TERM: _Fold.TERM_OP,
    _Fold.EXPRESSION: _Fold.EXPRESSION_OP,
}

_ADDITIVE = (Operation.ADD, Operation.SUB)


def reduce_side(
    parts: Sequence[Term],
    resolve: Optional[Callable[[Variable], Any]] = None,
) -> Any:
    """
    Fold one side of an equation left to right into a linear value.

    The fold tracks whether the running value is a constant, a single
    scaled variable (term) or a sum (expression). Constants combine freely;
    a variable may be added, subtracted, or multiplied by a constant, and a
    term or expression may be scaled by a constant. Multiplying or dividing
    by a variable, and dividing a constant by a variable, are rejected.

    Args:
        parts: Terms and operators of one side.
        resolve: Maps a Variable to a solver variable. Without it only the
            shape is checked and non-constant values come back as None.

    Returns:
        A float, a solver variable/term/expression, or None when validating.

    Raises:
        EquationFormatError: If the side is not a linear expression.
    """
    state = _Fold.INITIAL
    value: Any = None
    operation: Optional[Operation] = None

    def fail(message: str) -> EquationFormatError:
        return EquationFormatError(message, parts)

    for part in parts:
        if isinstance(part, Operator):
            if state not in _AFTER_OPERATOR:
                raise fail("Operator without a left operand")
            state = _AFTER_OPERATOR[state]
            operation = part.operation

        elif isinstance(part, Constant):
            if state is _Fold.INITIAL:
                state, value = _Fold.CONSTANT, part.value
            elif state is _Fold.CONSTANT_OP:
                state, value = _Fold.CONSTANT, _apply(operation, value, part.value, fail)
            elif state is _Fold.TERM_OP:
                state = _Fold.EXPRESSION if operation in _ADDITIVE else _Fold.TERM
                value = _apply(operation, value, part.value, fail)
            elif state is _Fold.EXPRESSION_OP:
                state, value = _Fold.EXPRESSION, _apply(operation, value, part.value, fail)
            else:
                raise fail("Two terms without an operator")

        elif isinstance(part, Variable):
            variable = resolve(part) if resolve is not None else None
            if state is _Fold.INITIAL:
                state, value = _Fold.TERM, variable
            elif state is _Fold.CONSTANT_OP:
                if operation is Operation.DIV:
                    raise fail("Division by a variable is not linear")
                state = _Fold.TERM if operation is Operation.MUL else _Fold.EXPRESSION
                value = _apply(operation, value, variable, fail)
            elif state in (_Fold.TERM_OP, _Fold.EXPRESSION_OP):
                if operation not in _ADDITIVE:
                    raise fail("Product or quotient of variables is not linear")
                state, value = _Fold.EXPRESSION, _apply(operation, value, variable, fail)
            else:
                raise fail("Two terms without an operator")

        else:
            raise fail(f"Unexpected {part!s} inside an equation side")

    if state not in (_Fold.CONSTANT, _Fold.TERM, _Fold.EXPRESSION):
        raise fail("Incomplete expression")
    return value


def _apply(operation: Operation, left: Any, right: Any, fail: Callable[[str], Exception]) -> Any:
    if operation is Operation.DIV and isinstance(right, float) and right == 0.0:
        raise fail("Division by zero")
    if left is None or right is None:
        return None
    if operation is Operation.ADD:
        return left + right
    if operation is Operation.SUB:
        return left - right
    if operation is Operation.MUL:
        return left * right
    return left / right
