"""
Formula evaluator tests.

Tests:
1. Norm formulas used in the shop (ceil(quantity/2), sheets*sides)
2. Operator precedence, associativity and unary minus
3. Functions: ceil, floor, round (ties-to-even), min, max
4. Evaluation errors: UnknownVariable, DivisionByZero
5. Syntax errors carry a 0-based position
6. Closed grammar: no attribute access, no host eval
7. compile_formula caching and variable listing
8. Non-finite values and nesting depth are rejected
"""

import pytest

from printdesk.pricing.errors import (
    ConfigurationError, DivisionByZero, InvalidFormula, NonFiniteResult, UnknownVariable,
)
from printdesk.pricing.formula import (
    MAX_DEPTH, Formula, TokenType, compile_formula, evaluate, tokenize,
)


# ============================================================
# Shop formulas
# ============================================================

def test_ceil_half_quantity():
    assert evaluate("ceil(quantity / 2)", {"quantity": 101}) == 51


def test_sheets_times_sides():
    assert evaluate("sheets * sides", {"sheets": 10, "sides": 2}) == 20


def test_constant_formula():
    assert evaluate("1", {}) == 1.0


def test_decimal_literal():
    assert evaluate("sheets * 0.5", {"sheets": 13}) == pytest.approx(6.5)


# ============================================================
# Precedence and unary operators
# ============================================================

@pytest.mark.parametrize("formula,expected", [
    ("2 + 3 * 4", 14),
    ("(2 + 3) * 4", 20),
    ("10 / 4", 2.5),
    ("10 - 2 - 3", 5),
    ("8 / 2 / 2", 2),
    ("-2 * 3", -6),
    ("2 - -3", 5),
    ("-(1 + 2)", -3),
    ("+4", 4),
])
def test_arithmetic(formula, expected):
    assert evaluate(formula, {}) == pytest.approx(expected)


def test_whitespace_is_ignored():
    assert evaluate("  ceil( quantity/up )*sides ", {"quantity": 100, "up": 8, "sides": 2}) == 26


def test_negative_result_is_returned():
    """The evaluator accepts negatives; norm resolution rejects them."""
    assert evaluate("sheets - 20", {"sheets": 5}) == -15


# ============================================================
# Functions
# ============================================================

def test_floor():
    assert evaluate("floor(quantity / 8)", {"quantity": 100}) == 12


def test_round_ties_to_even():
    assert evaluate("round(2.5)", {}) == 2
    assert evaluate("round(3.5)", {}) == 4


def test_round_with_digits():
    assert evaluate("round(3.14159, 2)", {}) == pytest.approx(3.14)


def test_min_max_variadic():
    context = {"sheets": 4}
    assert evaluate("min(3, sheets, 5)", context) == 3
    assert evaluate("max(3, sheets, 5)", context) == 5
    assert evaluate("max(1, sheets)", context) == 4


def test_nested_functions():
    assert evaluate("max(1, ceil(quantity / 500))", {"quantity": 1200}) == 3


def test_integral_functions_return_floats():
    assert isinstance(evaluate("ceil(1.2)", {}), float)


# ============================================================
# Evaluation errors
# ============================================================

def test_unknown_variable():
    with pytest.raises(UnknownVariable) as exc:
        evaluate("sheets * colors", {"sheets": 10})
    assert exc.value.name == "colors"


def test_division_by_zero():
    with pytest.raises(DivisionByZero):
        evaluate("quantity / up", {"quantity": 10, "up": 0})


def test_formula_errors_are_configuration_errors():
    with pytest.raises(ConfigurationError):
        evaluate("missing + 1", {})


# ============================================================
# Syntax errors
# ============================================================

@pytest.mark.parametrize("formula,position", [
    ("", 0),
    ("   ", 0),
    ("sheets * * 2", 9),
    ("2 + $", 4),
    ("(1 + 2", 6),
    ("1..2", 2),
    ("sheets 2", 7),
    ("ceil(1", 6),
])
def test_invalid_formula_position(formula, position):
    with pytest.raises(InvalidFormula) as exc:
        compile_formula(formula)
    assert exc.value.position == position


def test_unknown_function_is_syntax_error():
    with pytest.raises(InvalidFormula) as exc:
        compile_formula("sqrt(quantity)")
    assert exc.value.position == 0
    assert "sqrt" in exc.value.reason


@pytest.mark.parametrize("formula", ["ceil(1, 2)", "floor()", "round(1, 2, 3)", "min()"])
def test_wrong_arity_is_syntax_error(formula):
    with pytest.raises(InvalidFormula):
        compile_formula(formula)


def test_syntax_error_raised_before_context_is_read():
    with pytest.raises(InvalidFormula):
        evaluate("quantity +", {"quantity": 1})


# ============================================================
# Closed grammar
# ============================================================

@pytest.mark.parametrize("formula", [
    "__import__('os')",
    "quantity.real",
    "quantity ** 2",
    "[1, 2]",
    "quantity if 1 else 2",
])
def test_host_language_constructs_rejected(formula):
    with pytest.raises(InvalidFormula):
        compile_formula(formula)


def test_attribute_access_position():
    with pytest.raises(InvalidFormula) as exc:
        compile_formula("a.b")
    assert exc.value.position == 1


def test_tokenizer_positions():
    tokens = tokenize("ceil(q)")
    assert [t.type for t in tokens] == [
        TokenType.IDENT, TokenType.LPAREN, TokenType.IDENT, TokenType.RPAREN, TokenType.EOF,
    ]
    assert [t.position for t in tokens] == [0, 4, 5, 6, 7]


# ============================================================
# Compilation
# ============================================================

def test_compile_formula_lists_variables():
    formula = compile_formula("ceil(quantity / up) * sides + 1")
    assert isinstance(formula, Formula)
    assert formula.variables == frozenset({"quantity", "up", "sides"})


def test_compile_formula_is_cached():
    assert compile_formula("sheets * sides") is compile_formula("sheets * sides")


def test_compiled_formula_is_reusable():
    formula = compile_formula("sheets * sides")
    assert formula.evaluate({"sheets": 3, "sides": 1}) == 3
    assert formula.evaluate({"sheets": 3, "sides": 2}) == 6


# ============================================================
# Non-finite values and nesting depth
# ============================================================

def test_overflow_inside_rounding_function():
    with pytest.raises(NonFiniteResult):
        evaluate("ceil(quantity * 10)", {"quantity": 1e308})


def test_overflow_in_plain_arithmetic():
    with pytest.raises(NonFiniteResult):
        evaluate("quantity * 10", {"quantity": 1e308})


def test_overflowing_literal():
    with pytest.raises(NonFiniteResult):
        evaluate("9" * 400, {})


def test_non_finite_variable():
    with pytest.raises(NonFiniteResult):
        evaluate("sheets + 1", {"sheets": float("inf")})


def test_non_finite_is_configuration_error():
    with pytest.raises(ConfigurationError):
        evaluate("quantity * quantity", {"quantity": 1e200})


def test_deeply_nested_parentheses():
    with pytest.raises(InvalidFormula) as exc:
        compile_formula("(" * 3000 + "1" + ")" * 3000)
    assert exc.value.position == 0
    assert "nested" in exc.value.reason


def test_long_unary_chain():
    with pytest.raises(InvalidFormula):
        compile_formula("-" * 3000 + "1")


def test_long_operator_chain():
    with pytest.raises(InvalidFormula):
        compile_formula(" + ".join(["sheets"] * 2000))


def test_redundant_parentheses_do_not_count_as_depth():
    assert evaluate("(" * 50 + "sheets" + ")" * 50, {"sheets": 7}) == 7


def test_chain_within_depth_limit():
    formula = " + ".join(["1"] * MAX_DEPTH)
    assert evaluate(formula, {}) == MAX_DEPTH
