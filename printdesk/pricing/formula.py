"""
Formula evaluator for operation norms.

Norm formulas are typed in by admins, so they never reach eval().
They are parsed against a closed grammar into an immutable AST:

    expr    := term (('+' | '-') term)*
    term    := unary (('*' | '/') unary)*
    unary   := ('+' | '-') unary | primary
    primary := NUMBER | IDENT | IDENT '(' expr (',' expr)* ')' | '(' expr ')'

Functions: ceil, floor, round, min, max. All arithmetic is float.
Positions in InvalidFormula are 0-based character offsets.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum, auto
from functools import lru_cache
from typing import Mapping, Optional, Union

from .errors import DivisionByZero, InvalidFormula, NonFiniteResult, UnknownVariable


class TokenType(Enum):
    NUMBER = auto()
    IDENT = auto()
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    LPAREN = auto()
    RPAREN = auto()
    COMMA = auto()
    EOF = auto()


_SINGLE_CHAR_TOKENS = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.STAR,
    "/": TokenType.SLASH,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    ",": TokenType.COMMA,
}

# name -> (min args, max args); None = variadic
FUNCTIONS: dict[str, tuple[int, Optional[int]]] = {
    "ceil": (1, 1),
    "floor": (1, 1),
    "round": (1, 2),
    "min": (1, None),
    "max": (1, None),
}

# Evaluation recurses once per AST level
MAX_DEPTH = 100


@dataclass(frozen=True)
class Token:
    type: TokenType
    value: str
    position: int


def tokenize(formula: str) -> list[Token]:
    tokens: list[Token] = []
    pos = 0
    length = len(formula)
    while pos < length:
        ch = formula[pos]
        if ch.isspace():
            pos += 1
            continue
        if ch.isdigit() or (ch == "." and pos + 1 < length and formula[pos + 1].isdigit()):
            start = pos
            seen_dot = False
            while pos < length and (formula[pos].isdigit() or formula[pos] == "."):
                if formula[pos] == ".":
                    if seen_dot:
                        raise InvalidFormula(pos, "malformed number")
                    seen_dot = True
                pos += 1
            tokens.append(Token(TokenType.NUMBER, formula[start:pos], start))
            continue
        if ch.isalpha() or ch == "_":
            start = pos
            while pos < length and (formula[pos].isalnum() or formula[pos] == "_"):
                pos += 1
            tokens.append(Token(TokenType.IDENT, formula[start:pos], start))
            continue
        if ch in _SINGLE_CHAR_TOKENS:
            tokens.append(Token(_SINGLE_CHAR_TOKENS[ch], ch, pos))
            pos += 1
            continue
        raise InvalidFormula(pos, f"unexpected character '{ch}'")
    tokens.append(Token(TokenType.EOF, "", length))
    return tokens


# --- AST ---

@dataclass(frozen=True)
class Number:
    value: float


@dataclass(frozen=True)
class Variable:
    name: str
    position: int


@dataclass(frozen=True)
class UnaryOp:
    op: str
    operand: "Node"


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: "Node"
    right: "Node"


@dataclass(frozen=True)
class Call:
    name: str
    args: tuple
    position: int


Node = Union[Number, Variable, UnaryOp, BinaryOp, Call]


class Parser:
    """Recursive-descent parser over the token list."""

    def __init__(self, tokens: list[Token]):
        self.tokens = tokens
        self.pos = 0

    def _current(self) -> Token:
        return self.tokens[self.pos]

    def _peek(self) -> TokenType:
        return self._current().type

    def _advance(self) -> Token:
        tok = self._current()
        if tok.type != TokenType.EOF:
            self.pos += 1
        return tok

    def _expect(self, tt: TokenType, what: str) -> Token:
        tok = self._current()
        if tok.type != tt:
            raise InvalidFormula(tok.position, f"expected {what}, got {_describe(tok)}")
        return self._advance()

    def parse(self) -> Node:
        if self._peek() == TokenType.EOF:
            raise InvalidFormula(0, "empty formula")
        node = self._parse_expression()
        if self._peek() != TokenType.EOF:
            tok = self._current()
            raise InvalidFormula(tok.position, f"unexpected {_describe(tok)}")
        return node

    def _parse_expression(self) -> Node:
        left = self._parse_term()
        while self._peek() in (TokenType.PLUS, TokenType.MINUS):
            op = self._advance().value
            right = self._parse_term()
            left = BinaryOp(op, left, right)
        return left

    def _parse_term(self) -> Node:
        left = self._parse_unary()
        while self._peek() in (TokenType.STAR, TokenType.SLASH):
            op = self._advance().value
            right = self._parse_unary()
            left = BinaryOp(op, left, right)
        return left

    def _parse_unary(self) -> Node:
        if self._peek() in (TokenType.PLUS, TokenType.MINUS):
            op = self._advance().value
            return UnaryOp(op, self._parse_unary())
        return self._parse_primary()

    def _parse_primary(self) -> Node:
        tok = self._current()

        if tok.type == TokenType.NUMBER:
            self._advance()
            return Number(float(tok.value))

        if tok.type == TokenType.IDENT:
            self._advance()
            if self._peek() == TokenType.LPAREN:
                return self._parse_call(tok)
            return Variable(tok.value, tok.position)

        if tok.type == TokenType.LPAREN:
            self._advance()
            node = self._parse_expression()
            self._expect(TokenType.RPAREN, "')'")
            return node

        raise InvalidFormula(tok.position, f"unexpected {_describe(tok)}")

    def _parse_call(self, name_tok: Token) -> Call:
        name = name_tok.value
        if name not in FUNCTIONS:
            raise InvalidFormula(name_tok.position, f"unknown function '{name}'")
        self._advance()  # '('
        args = []
        if self._peek() != TokenType.RPAREN:
            args.append(self._parse_expression())
            while self._peek() == TokenType.COMMA:
                self._advance()
                args.append(self._parse_expression())
        self._expect(TokenType.RPAREN, "')'")

        min_args, max_args = FUNCTIONS[name]
        if len(args) < min_args or (max_args is not None and len(args) > max_args):
            raise InvalidFormula(
                name_tok.position,
                f"{name}() takes {_arity_text(min_args, max_args)}, got {len(args)}",
            )
        return Call(name, tuple(args), name_tok.position)


def _describe(tok: Token) -> str:
    if tok.type == TokenType.EOF:
        return "end of formula"
    return f"'{tok.value}'"


def _arity_text(min_args: int, max_args: Optional[int]) -> str:
    if max_args is None:
        return f"at least {min_args} argument(s)"
    if min_args == max_args:
        return f"{min_args} argument(s)"
    return f"{min_args} to {max_args} arguments"


# --- Evaluation ---

def _eval(node: Node, context: Mapping[str, float]) -> float:
    value = _eval_node(node, context)
    if not math.isfinite(value):
        raise NonFiniteResult(value)
    return value


def _eval_node(node: Node, context: Mapping[str, float]) -> float:
    if isinstance(node, Number):
        return node.value

    if isinstance(node, Variable):
        if node.name not in context:
            raise UnknownVariable(node.name)
        return float(context[node.name])

    if isinstance(node, UnaryOp):
        value = _eval(node.operand, context)
        return -value if node.op == "-" else value

    if isinstance(node, BinaryOp):
        left = _eval(node.left, context)
        right = _eval(node.right, context)
        if node.op == "+":
            return left + right
        if node.op == "-":
            return left - right
        if node.op == "*":
            return left * right
        if right == 0:
            raise DivisionByZero()
        return left / right

    args = [_eval(arg, context) for arg in node.args]
    if node.name == "ceil":
        return float(math.ceil(args[0]))
    if node.name == "floor":
        return float(math.floor(args[0]))
    if node.name == "round":
        digits = int(args[1]) if len(args) == 2 else 0
        return float(round(args[0], digits))
    if node.name == "min":
        return min(args)
    return max(args)


def _depth(root: Node) -> int:
    """AST height, walked without recursion."""
    deepest = 0
    stack = [(root, 1)]
    while stack:
        node, level = stack.pop()
        deepest = max(deepest, level)
        if isinstance(node, UnaryOp):
            stack.append((node.operand, level + 1))
        elif isinstance(node, BinaryOp):
            stack.append((node.left, level + 1))
            stack.append((node.right, level + 1))
        elif isinstance(node, Call):
            stack.extend((arg, level + 1) for arg in node.args)
    return deepest


def _collect_variables(node: Node, names: set) -> None:
    if isinstance(node, Variable):
        names.add(node.name)
    elif isinstance(node, UnaryOp):
        _collect_variables(node.operand, names)
    elif isinstance(node, BinaryOp):
        _collect_variables(node.left, names)
        _collect_variables(node.right, names)
    elif isinstance(node, Call):
        for arg in node.args:
            _collect_variables(arg, names)


@dataclass(frozen=True)
class Formula:
    """A parsed norm formula. Safe to share between requests."""
    source: str
    root: Node

    @property
    def variables(self) -> frozenset:
        names: set = set()
        _collect_variables(self.root, names)
        return frozenset(names)

    def evaluate(self, context: Mapping[str, float]) -> float:
        return _eval(self.root, context)


@lru_cache(maxsize=512)
def compile_formula(formula: str) -> Formula:
    """Parse a formula string. Raises InvalidFormula on syntax errors."""
    if not isinstance(formula, str):
        raise InvalidFormula(0, "formula must be a string")
    try:
        root = Parser(tokenize(formula)).parse()
    except RecursionError:
        raise InvalidFormula(0, "formula nested too deeply") from None
    if _depth(root) > MAX_DEPTH:
        raise InvalidFormula(0, "formula nested too deeply")
    return Formula(formula, root)


def evaluate(formula: str, context: Mapping[str, float]) -> float:
    """Evaluate a formula string against a variable context."""
    return compile_formula(formula).evaluate(context)
