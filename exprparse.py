"""Evaluate simple infix arithmetic expressions.

An expression is scanned into tokens, reordered into postfix (reverse polish)
order with the shunting-yard algorithm and then reduced on a value stack.

>>> parse_expression("(12.0 + 4.0)^-0.5")
(0.25, <Status.SUCCESS: 0>)
>>> parse_expression("2/0")
(0.0, <Status.DIVIDE_BY_ZERO: 2>)
>>> format_postfix(to_postfix(tokenize("3^2^3")))
'3 2 3 ^ ^'
"""
import logging
import operator
import re
from enum import Enum, IntEnum
from typing import Callable, Iterable, Iterator, List, Literal, NamedTuple, Tuple, Union

import numpy as np

__version__ = "0.1.0"

logger = logging.getLogger(__name__)

# Divisors closer to zero than this are treated as zero.
ALMOST_ZERO = 1e-10


class Status(IntEnum):
    SUCCESS = 0
    ERROR = 1
    DIVIDE_BY_ZERO = 2
    EMPTY_EXPRESSION = 3
    UNKNOWN_TOKEN = 4
    UNMATCHED_BRACKETS = 5
    TOO_FEW_ARGUMENTS = 6
    TOO_MANY_ARGUMENTS = 7


STATUS_STRINGS = {
    Status.SUCCESS: "Success",
    Status.ERROR: "Error",
    Status.DIVIDE_BY_ZERO: "Divide by zero",
    Status.EMPTY_EXPRESSION: "Empty input expression",
    Status.UNKNOWN_TOKEN: "Unrecognized token",
    Status.UNMATCHED_BRACKETS: "Brackets not matched",
    Status.TOO_FEW_ARGUMENTS: "Not enough arguments found for operator",
    Status.TOO_MANY_ARGUMENTS: "Too many arguments found for operations",
}


class ExpressionError(Exception):
    """An expression could not be evaluated; `status` says why."""

    def __init__(self, status: Status, detail: str = ""):
        super().__init__(detail or STATUS_STRINGS[status])
        self.status = status
        self.detail = detail


def _divide(a, b):
    if abs(b) < ALMOST_ZERO:
        raise ExpressionError(Status.DIVIDE_BY_ZERO, f"divisor {b!r} is too close to zero")
    return a / b


def _power(a, b):
    """a^b with C `pow` semantics: nan or +-inf instead of exceptions.

    >>> _power(2.0, 10.0)
    1024.0
    >>> _power(-8.0, 1 / 3)
    nan
    >>> _power(0.0, -1.0)
    inf
    """
    with np.errstate(all="ignore"):
        return float(np.power(np.float64(a), np.float64(b)))


class Op(NamedTuple):
    name: str
    symbol: str
    prec: int
    arity: int
    assoc: Literal["l", "r"]  # left-associative, right-associative
    fun: Callable

    def __call__(self, *args):
        if len(args) != self.arity:
            raise ExpressionError(
                Status.ERROR, f"{self.name} takes {self.arity} argument(s), got {len(args)}"
            )
        return self.fun(*args)

    def __repr__(self):
        return f"op({self.name!r:})"

    def __str__(self):
        return self.symbol if self.arity == 2 else self.name

    def left_first(self, other):
        """True if `self`, waiting on the operator stack, must be applied before `other`."""
        return self.prec > other.prec or self.prec == other.prec and self.assoc == "l"


# One precedence level per line, loosest first; unary ops are neg and pos.
OP_GROUPS = """
add+l sub-l
mul*l truediv/l
pow^r neg-r pos+r
""".strip()
UNARY = {"neg", "pos"}
FUNS = {"truediv": _divide, "pow": _power}
OPS = {
    name: Op(
        name,
        symbol,
        prec,
        1 if name in UNARY else 2,
        assoc,
        FUNS.get(name) or getattr(operator, name),
    )
    for prec, op_group in enumerate(OP_GROUPS.split("\n"), 1)
    for [(name, symbol, assoc)] in map(
        re.compile(r"^(\w+)(\W+)(\w+)$").findall, op_group.split()
    )
}
BINARY_OPS = {o.symbol: o for o in OPS.values() if o.arity == 2}
BINARY_OPS["**"] = OPS["pow"]
UNARY_OPS = {o.symbol: o for o in OPS.values() if o.arity == 1}


class Number(NamedTuple):
    value: float


class Bracket(Enum):
    LEFT = "("
    RIGHT = ")"


Token = Union[Number, Op, Bracket]

WHITESPACE = re.compile(r"[ \t\r\f\n]*")
# Alternatives are tried in order, so `**` must come before `*`.  A literal
# carries no sign and must not run into another `.`, digit or exponent.
TOKEN = re.compile(
    r"""
    (?P<number>(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?(?![0-9.eE]))
    | (?P<op>\*\*|[\^*/+-])
    | (?P<left>[(\[])
    | (?P<right>[)\]])
    """,
    re.VERBOSE,
)


def lex(s: str) -> Iterator[Token]:
    """Yield the tokens of `s`; `+` and `-` are unary unless they follow an operand.

    >>> list(lex("-1 - 2"))
    [op('neg'), Number(value=1.0), op('sub'), Number(value=2.0)]
    """
    prev = None
    pos = WHITESPACE.match(s).end()
    while pos < len(s):
        m = TOKEN.match(s, pos)
        if not m:
            raise ExpressionError(
                Status.UNKNOWN_TOKEN, f"unrecognized token at position {pos}: {s[pos:pos + 10]!r}"
            )
        kind, text = m.lastgroup, m.group()
        if kind == "number":
            tok = Number(float(text))
        elif kind == "op":
            unary = not isinstance(prev, Number) and prev is not Bracket.RIGHT
            tok = UNARY_OPS[text] if unary and text in UNARY_OPS else BINARY_OPS[text]
        elif kind == "left":
            tok = Bracket.LEFT
        else:
            tok = Bracket.RIGHT
        yield tok
        prev = tok
        pos = WHITESPACE.match(s, m.end()).end()


def tokenize(expression: str) -> List[Token]:
    if not expression:
        raise ExpressionError(Status.EMPTY_EXPRESSION)
    return list(lex(expression))


def to_postfix(tokens: Iterable[Token]) -> List[Token]:
    """Reorder infix `tokens` into postfix order (shunting-yard)."""
    out, ops = [], []
    for tok in tokens:
        if isinstance(tok, Number):
            out.append(tok)
        elif tok is Bracket.LEFT:
            ops.append(tok)
        elif tok is Bracket.RIGHT:
            while ops and ops[-1] is not Bracket.LEFT:
                out.append(ops.pop())
            if not ops:
                raise ExpressionError(Status.UNMATCHED_BRACKETS, "closing bracket without opening one")
            ops.pop()
        else:
            while ops and ops[-1] is not Bracket.LEFT and ops[-1].left_first(tok):
                out.append(ops.pop())
            ops.append(tok)
    while ops:
        if (tok := ops.pop()) is Bracket.LEFT:
            raise ExpressionError(Status.UNMATCHED_BRACKETS, "opening bracket is never closed")
        out.append(tok)
    return out


def eval_postfix(postfix: Iterable[Token]) -> float:
    stack = []
    for tok in postfix:
        if isinstance(tok, Number):
            stack.append(tok.value)
        elif isinstance(tok, Op):
            n = tok.arity
            if len(stack) < n:
                raise ExpressionError(
                    Status.TOO_FEW_ARGUMENTS, f"{tok.symbol!r} needs {n} argument(s), found {len(stack)}"
                )
            stack[-n:] = [tok(*stack[-n:])]
        else:
            raise ExpressionError(Status.UNKNOWN_TOKEN, f"{tok!r} cannot be evaluated")
    if not stack:
        raise ExpressionError(Status.TOO_FEW_ARGUMENTS, "nothing to evaluate")
    if len(stack) > 1:
        raise ExpressionError(
            Status.TOO_MANY_ARGUMENTS, f"{len(stack)} values left without an operator to combine them"
        )
    (ans,) = stack
    return ans


def format_number(num: float) -> str:
    """
    >>> format_number(3.0), format_number(0.25), format_number(1e20)
    ('3', '0.25', '1e+20')
    """
    return repr(int(num)) if num.is_integer() and abs(num) < 1e16 else repr(num)


def format_token(tok: Token) -> str:
    if isinstance(tok, Number):
        return format_number(tok.value)
    if isinstance(tok, Bracket):
        return tok.value
    return str(tok)


def format_postfix(tokens: Iterable[Token]) -> str:
    return " ".join(map(format_token, tokens))


def calculate(expression: str) -> float:
    """Evaluate `expression`, raising `ExpressionError` if that is not possible.

    >>> calculate("5 - 10/-5")
    7.0
    """
    tokens = tokenize(expression)
    postfix = to_postfix(tokens)
    logger.debug("%r -> postfix %s", expression, format_postfix(postfix))
    return eval_postfix(postfix)


def parse_expression(expression: str) -> Tuple[float, Status]:
    """Return `(value, Status.SUCCESS)`, or `(0.0, status)` naming the failure."""
    try:
        return calculate(expression), Status.SUCCESS
    except ExpressionError as e:
        logger.debug("%r failed: %s (%s)", expression, e.status.name, e)
        return 0.0, e.status


def get_status_string(status: Status) -> str:
    return STATUS_STRINGS.get(status, "Unknown status")


def get_version() -> str:
    return __version__
