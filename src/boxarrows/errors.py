"""
Exception taxonomy for the diagram pipeline.

Every error raised on purpose by parsing, model building or constraint
building derives from DiagramError. Solver errors raised by kiwisolver are
not wrapped. Routing failures are not errors at all: an unroutable
connector is skipped.
"""

from typing import Optional, Sequence


class DiagramError(Exception):
    """Base class for all pipeline errors."""

    pass


class ParseError(DiagramError):
    """Raised when spec text is malformed."""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        self.line = line
        self.column = column
        if line is not None:
            message = f"Line {line}, column {column}: {message}"
        super().__init__(message)


class EquationFormatError(ParseError):
    """
    Raised when an equation is malformed or not linear.

    Attributes:
        parts: The offending token or term sequence.
    """

    def __init__(self, message: str, parts: Sequence = (), line: Optional[int] = None, column: Optional[int] = None):
        self.reason = message
        self.parts = tuple(parts)
        if self.parts:
            rendered = " ".join(str(part) for part in self.parts)
            message = f"{message}: {rendered}"
        super().__init__(message, line, column)


class UndefinedReferenceError(DiagramError):
    """Raised when a box, style, anchor or arrowhead name is not defined."""

    def __init__(self, name: str, kind: str = "reference"):
        self.name = name
        self.kind = kind
        super().__init__(f"Undefined {kind}: '{name}'")


class UnsupportedFieldError(DiagramError):
    """Raised when a field appears on a declaration that does not accept it."""

    def __init__(self, field: str, context: str):
        self.field = field
        self.context = context
        super().__init__(f"Field '{field}' is not supported on {context}")


class DuplicateDefinitionError(DiagramError):
    """Raised when a box or style id is declared twice or is reserved."""

    def __init__(self, name: str, reason: str = "declared more than once"):
        self.name = name
        super().__init__(f"'{name}' {reason}")
