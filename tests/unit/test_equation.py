"""Unit tests for the equation module."""

import pytest

from boxarrows.equation import (
    Constant,
    Equation,
    LineComment,
    Operation,
    Operator,
    Relation,
    Variable,
    parse_equation,
    reduce_side,
    tokenize_equation,
)
from boxarrows.errors import EquationFormatError, ParseError


class TestTokenize:
    """Tests for tokenize_equation."""

    def test_full_equation(self):
        """Test constants, operators, identifiers, relation and comment."""
        tokens = tokenize_equation("1.2 + box1.left == box2.right - 40 // comment")
        assert tokens == [
            Constant(1.2),
            Operator(Operation.ADD),
            Variable("box1", ("left",)),
            Relation.EQ,
            Variable("box2", ("right",)),
            Operator(Operation.SUB),
            Constant(40.0),
            LineComment(" comment"),
        ]

    @pytest.mark.parametrize(
        "text, relation",
        [
            ("a <= b", Relation.LTE),
            ("a >= b", Relation.GTE),
            ("a == b", Relation.EQ),
            ("a = b", Relation.EQ),
            ("a < b", Relation.LT),
            ("a > b", Relation.GT),
            ("a ≤ b", Relation.LTE),
            ("a ≥ b", Relation.GTE),
        ],
    )
    def test_relation_spellings(self, text, relation):
        """Test every relation spelling."""
        assert tokenize_equation(text)[1] is relation

    def test_identifier_segments(self):
        """Test dotted identifiers split into head and tail."""
        assert tokenize_equation("a")[0] == Variable("a")
        assert tokenize_equation("a.b.c")[0] == Variable("a", ("b", "c"))

    def test_signed_constant_where_term_expected(self):
        """Test a leading minus is part of the number after a relation."""
        tokens = tokenize_equation("a.left == -5")
        assert tokens[-1] == Constant(-5.0)

    def test_minus_after_term_is_operator(self):
        """Test minus after a term is subtraction."""
        tokens = tokenize_equation("a.left -5 == b.left")
        assert tokens[1] == Operator(Operation.SUB)
        assert tokens[2] == Constant(5.0)

    @pytest.mark.parametrize("text", [".", ".b.c", "a.b.c.", "a.left == ."])
    def test_malformed_identifiers(self, text):
        """Test stray periods and characters are rejected."""
        with pytest.raises(EquationFormatError):
            tokenize_equation(text)


class TestParseEquation:
    """Tests for parse_equation validation."""

    def test_simple(self):
        """Test splitting at the relation."""
        equation = parse_equation("n1.left == n2.right + 30.0")
        assert equation == Equation(
            Relation.EQ,
            (Variable("n1", ("left",)),),
            (Variable("n2", ("right",)), Operator(Operation.ADD), Constant(30.0)),
        )

    def test_line_comment_kept(self):
        """Test a trailing comment is captured separately."""
        equation = parse_equation("a.top <= b.top // keep above")
        assert equation.line_comment == LineComment(" keep above")
        assert equation.right == (Variable("b", ("top",)),)

    def test_two_relations_fail(self):
        """Test a == b == c is rejected."""
        with pytest.raises(EquationFormatError) as exc_info:
            parse_equation("a == b == c")
        assert "More than one relation" in str(exc_info.value)
        assert exc_info.value.parts[1] is Relation.EQ

    def test_missing_relation(self):
        """Test an equation needs a relation."""
        with pytest.raises(EquationFormatError):
            parse_equation("a.left + 3")

    @pytest.mark.parametrize("text", ["== b.left", "a.left ==", "a.left == // comment"])
    def test_empty_side(self, text):
        """Test both sides must be non-empty."""
        with pytest.raises(EquationFormatError):
            parse_equation(text)

    @pytest.mark.parametrize("text", ["a.left b.left == 3", "a.left + * 3 == 4", "a.left + == 3"])
    def test_must_alternate(self, text):
        """Test adjacent terms or operators are rejected."""
        with pytest.raises(EquationFormatError):
            parse_equation(text)

    def test_comment_before_relation(self):
        """Test a comment cannot end the left side."""
        with pytest.raises(EquationFormatError):
            parse_equation("a.left // == b.left")

    @pytest.mark.parametrize(
        "text",
        [
            "a.left * b.left == 3",
            "a.left / b.left == 3",
            "3 / a.left == 1",
            "a.left + b.left * c.left == 1",
        ],
    )
    def test_non_linear_rejected(self, text):
        """Test products and quotients of variables are rejected."""
        with pytest.raises(EquationFormatError):
            parse_equation(text)

    @pytest.mark.parametrize(
        "text",
        [
            "2 * a.left == b.left",
            "a.left * 2 + 3 == b.left / 2",
            "a.left + b.left - 4 == 1 + 2",
            "a.left + 1 * 3 == b.left",
            "3 - a.left == b.right",
        ],
    )
    def test_linear_accepted(self, text):
        """Test linear shapes validate."""
        assert isinstance(parse_equation(text), Equation)

    def test_strict_relations_parse(self):
        """Test < and > are accepted syntactically."""
        assert parse_equation("a.left < b.left").relation is Relation.LT

    def test_format_error_is_parse_error(self):
        """Test EquationFormatError is catchable as ParseError."""
        with pytest.raises(ParseError):
            parse_equation("a.left")

    def test_str_round_trip(self):
        """Test the string form parses back to the same equation."""
        equation = parse_equation("n1.left >= n2.right + 30.0 // gap")
        assert parse_equation(str(equation)) == equation


class TestReduceSide:
    """Tests for the left-to-right fold."""

    def test_constants_fold(self):
        """Test constant arithmetic folds without precedence."""
        parts = [Constant(1.0), Operator(Operation.ADD), Constant(2.0), Operator(Operation.MUL), Constant(3.0)]
        assert reduce_side(parts) == 9.0

    def test_validation_mode_returns_none_for_terms(self):
        """Test sides with variables reduce to None without a resolver."""
        assert reduce_side([Variable("a", ("left",))]) is None

    def test_resolver_used(self):
        """Test variables are resolved and combined."""
        values = {"a.left": 10.0, "b.left": 4.0}
        parts = [
            Variable("a", ("left",)),
            Operator(Operation.SUB),
            Variable("b", ("left",)),
            Operator(Operation.MUL),
            Constant(2.0),
        ]
        assert reduce_side(parts, lambda v: values[str(v)]) == 12.0

    def test_division_by_zero(self):
        """Test dividing by a zero constant is rejected."""
        with pytest.raises(EquationFormatError):
            reduce_side([Constant(1.0), Operator(Operation.DIV), Constant(0.0)])

    def test_trailing_operator(self):
        """Test a side cannot end on an operator."""
        with pytest.raises(EquationFormatError) as exc_info:
            reduce_side([Variable("a", ("left",)), Operator(Operation.ADD)])
        assert exc_info.value.parts == (Variable("a", ("left",)), Operator(Operation.ADD))
