"""Parsing and evaluation of small arithmetic, logical and string expressions."""

from __future__ import annotations

import math
import re
import sys
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import NamedTuple

__all__ = [
    "ValueType",
    "ParseError",
    "EvalResult",
    "Expression",
    "parse",
    "main",
    "UNMATCHED_QUOTE",
    "UNMATCHED_LEFT",
    "UNMATCHED_RIGHT",
    "UNKNOWN_OPERATOR",
    "FUNCTION_SYNTAX",
    "ARGUMENTS",
    "BAD_NUMBER",
    "UNDEFINED_FUNCTION",
    "UNASSIGNED_VARIABLE",
]

# Parse error codes
UNMATCHED_QUOTE = 0x01
UNMATCHED_LEFT = 0x02
UNMATCHED_RIGHT = 0x04
UNKNOWN_OPERATOR = 0x08
FUNCTION_SYNTAX = 0x10
ARGUMENTS = 0x20
BAD_NUMBER = 0x40

# Evaluation warning flags
UNDEFINED_FUNCTION = 0x40
UNASSIGNED_VARIABLE = 0x80

_MESSAGES = {
    UNMATCHED_QUOTE: "unmatched quotation mark",
    UNMATCHED_LEFT: "unmatched left parenthesis",
    UNMATCHED_RIGHT: "unmatched right parenthesis",
    UNKNOWN_OPERATOR: "unknown operator",
    FUNCTION_SYNTAX: "wrong function syntax",
    ARGUMENTS: "wrong number of arguments",
    BAD_NUMBER: "failed to parse a number",
}

_INT64_MIN = -(1 << 63)
_SPACE = " \t\n\v\f\r"
_DIGITS = "0123456789"


class ValueType(IntEnum):
    """Type of a value produced by an expression."""

    REAL = 1
    INT = 2
    STR = 3


class ParseError(ValueError):
    """Raised when an expression cannot be parsed; ``code`` holds the error flag."""

    def __init__(self, code: int) -> None:
        super().__init__(f"{_MESSAGES.get(code, 'parse error')} (0x{code:x})")
        self.code = code


@dataclass(frozen=True)
class EvalResult:
    """The outcome of evaluating an expression."""

    type: ValueType
    int_value: int
    real_value: float
    str_value: str | None
    warnings: int = 0

    @property
    def value(self) -> int | float | str | None:
        """The result as a Python value of its own type."""
        if self.type is ValueType.INT:
            return self.int_value
        if self.type is ValueType.REAL:
            return self.real_value
        return self.str_value


# ---------------------------------------------------------------- numerics


def _wrap(value: int) -> int:
    return ((value - _INT64_MIN) % (1 << 64)) + _INT64_MIN


def _trunc64(x: float) -> int:
    if not math.isfinite(x) or not (-(2.0**63) <= x < 2.0**63):
        return _INT64_MIN
    return int(x)


def _round_half(x: float) -> int:
    return _trunc64(x + 0.5)


def _c_idiv(a: int, b: int) -> int:
    if b == 0:
        raise ZeroDivisionError("integer division by zero")
    q = abs(a) // abs(b)
    return -q if (a < 0) != (b < 0) else q


def _c_mod(a: int, b: int) -> int:
    return a - b * _c_idiv(a, b)


def _fdiv(a: float, b: float) -> float:
    if b == 0.0:
        if a == 0.0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def _is_odd_integer(x: float) -> bool:
    return math.isfinite(x) and x.is_integer() and int(x) % 2 == 1


def _pow(a: float, b: float) -> float:
    try:
        return math.pow(a, b)
    except OverflowError:
        return -math.inf if a < 0 and _is_odd_integer(b) else math.inf
    except ValueError:
        if a == 0.0:
            return math.copysign(math.inf, a) if _is_odd_integer(b) else math.inf
        return math.nan


_SIGN_RE = re.compile(r"[ \t\n\v\f\r]*([+-]?)")
_HEX_FLOAT_RE = re.compile(
    r"0[xX](?:[0-9a-fA-F]+(?:\.[0-9a-fA-F]*)?|\.[0-9a-fA-F]+)(?:[pP][+-]?[0-9]+)?"
)
_DEC_FLOAT_RE = re.compile(r"(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_SPECIAL_FLOAT_RE = re.compile(r"(?i:inf(?:inity)?|nan)")
_HEX_INT_RE = re.compile(r"0[xX][0-9a-fA-F]+")
_OCT_INT_RE = re.compile(r"0[0-7]*")
_DEC_INT_RE = re.compile(r"[1-9][0-9]*")


def _strtod(text: str, pos: int = 0) -> tuple[float, int]:
    """Parse a floating-point prefix; return the value and the end position."""
    sign_match = _SIGN_RE.match(text, pos)
    start = sign_match.end()
    negative = sign_match.group(1) == "-"
    match = _HEX_FLOAT_RE.match(text, start)
    if match:
        try:
            value = float.fromhex(match.group())
        except OverflowError:
            value = math.inf
    else:
        match = _DEC_FLOAT_RE.match(text, start) or _SPECIAL_FLOAT_RE.match(text, start)
        if not match:
            return 0.0, pos
        value = float(match.group())
    return (-value if negative else value), match.end()


def _strtol(text: str, pos: int = 0) -> tuple[int, int]:
    """Parse an integer prefix with automatic base; clamp to the 64-bit range."""
    sign_match = _SIGN_RE.match(text, pos)
    start = sign_match.end()
    negative = sign_match.group(1) == "-"
    for pattern, base in ((_HEX_INT_RE, 16), (_OCT_INT_RE, 8), (_DEC_INT_RE, 10)):
        match = pattern.match(text, start)
        if match:
            value = int(match.group(), base)
            value = -value if negative else value
            value = max(_INT64_MIN, min(value, (1 << 63) - 1))
            return value, match.end()
    return 0, pos


# ---------------------------------------------------------------- operators


@dataclass(slots=True)
class _Slot:
    vtype: int = 0
    i: int = 0
    r: float = 0.0
    s: str | None = None


def _either_real(p: _Slot, q: _Slot) -> bool:
    return p.vtype == ValueType.REAL or q.vtype == ValueType.REAL


def _strcmp(a: str | None, b: str | None) -> int:
    x = (a or "").encode()
    y = (b or "").encode()
    return (x > y) - (x < y)


def _compare(test: Callable[[object, object], bool]) -> Callable[[_Slot, _Slot], None]:
    def apply(p: _Slot, q: _Slot) -> None:
        if p.vtype == ValueType.STR and q.vtype == ValueType.STR:
            result = test(_strcmp(p.s, q.s), 0)
        elif _either_real(p, q):
            result = test(p.r, q.r)
        else:
            result = test(p.i, q.i)
        p.i = int(result)
        p.r = float(p.i)
        p.vtype = ValueType.INT

    return apply


def _integer(fn: Callable[[int, int], int]) -> Callable[[_Slot, _Slot], None]:
    def apply(p: _Slot, q: _Slot) -> None:
        p.i = _wrap(fn(p.i, q.i))
        p.r = float(p.i)
        p.vtype = ValueType.INT

    return apply


def _both(
    fi: Callable[[int, int], int], fr: Callable[[float, float], float]
) -> Callable[[_Slot, _Slot], None]:
    def apply(p: _Slot, q: _Slot) -> None:
        real = _either_real(p, q)
        p.i = _wrap(fi(p.i, q.i))
        p.r = fr(p.r, q.r)
        p.vtype = ValueType.REAL if real else ValueType.INT

    return apply


def _op_div(p: _Slot, q: _Slot) -> None:
    p.r = _fdiv(p.r, q.r)
    p.i = _round_half(p.r)
    p.vtype = ValueType.REAL


def _op_pow(p: _Slot, q: _Slot) -> None:
    real = _either_real(p, q)
    p.r = _pow(p.r, q.r)
    p.i = _round_half(p.r)
    p.vtype = ValueType.REAL if real else ValueType.INT


def _op_land(p: _Slot, q: _Slot) -> None:
    p.i = int(bool(p.i) and bool(q.i))
    p.r = float(p.i)
    p.vtype = ValueType.INT


def _op_lor(p: _Slot, q: _Slot) -> None:
    p.i = int(bool(p.i) or bool(q.i))
    p.r = float(p.i)
    p.vtype = ValueType.INT


def _op_bnot(p: _Slot, q: _Slot | None) -> None:
    p.i = _wrap(~p.i)
    p.r = float(p.i)
    p.vtype = ValueType.INT


def _op_lnot(p: _Slot, q: _Slot | None) -> None:
    p.i = int(not p.i)
    p.r = float(p.i)
    p.vtype = ValueType.INT


def _op_pos(p: _Slot, q: _Slot | None) -> None:
    pass


def _op_neg(p: _Slot, q: _Slot | None) -> None:
    p.i = _wrap(-p.i)
    p.r = -p.r


def _func_abs(p: _Slot, q: _Slot | None) -> None:
    if p.vtype == ValueType.INT:
        p.i = _wrap(abs(p.i))
        p.r = float(p.i)
    else:
        p.r = abs(p.r)
        p.i = _round_half(p.r)


class _OpInfo(NamedTuple):
    symbol: str
    precedence: int
    right: bool
    n_args: int
    apply: Callable[[_Slot, _Slot | None], None]


_POS = _OpInfo("+(1)", 1, True, 1, _op_pos)
_NEG = _OpInfo("-(1)", 1, True, 1, _op_neg)
_BNOT = _OpInfo("~", 1, True, 1, _op_bnot)
_LNOT = _OpInfo("!", 1, True, 1, _op_lnot)
_POW = _OpInfo("**", 2, True, 2, _op_pow)
_MUL = _OpInfo("*", 3, False, 2, _both(lambda a, b: a * b, lambda a, b: a * b))
_DIV = _OpInfo("/", 3, False, 2, _op_div)
_IDIV = _OpInfo("//", 3, False, 2, _integer(_c_idiv))
_MOD = _OpInfo("%", 3, False, 2, _integer(_c_mod))
_ADD = _OpInfo("+", 4, False, 2, _both(lambda a, b: a + b, lambda a, b: a + b))
_SUB = _OpInfo("-", 4, False, 2, _both(lambda a, b: a - b, lambda a, b: a - b))
_LSH = _OpInfo("<<", 5, False, 2, _integer(lambda a, b: a << (b & 63)))
_RSH = _OpInfo(">>", 5, False, 2, _integer(lambda a, b: a >> (b & 63)))
_LT = _OpInfo("<", 6, False, 2, _compare(lambda a, b: a < b))
_LE = _OpInfo("<=", 6, False, 2, _compare(lambda a, b: a <= b))
_GT = _OpInfo(">", 6, False, 2, _compare(lambda a, b: a > b))
_GE = _OpInfo(">=", 6, False, 2, _compare(lambda a, b: a >= b))
_EQ = _OpInfo("==", 7, False, 2, _compare(lambda a, b: a == b))
_NE = _OpInfo("!=", 7, False, 2, _compare(lambda a, b: a != b))
_BAND = _OpInfo("&", 8, False, 2, _integer(lambda a, b: a & b))
_BXOR = _OpInfo("^", 9, False, 2, _integer(lambda a, b: a ^ b))
_BOR = _OpInfo("|", 10, False, 2, _integer(lambda a, b: a | b))
_LAND = _OpInfo("&&", 11, False, 2, _op_land)
_LOR = _OpInfo("||", 12, False, 2, _op_lor)

# Matched in this order; the second entry is used when no value precedes.
_OPERATORS: tuple[tuple[str, _OpInfo, _OpInfo | None], ...] = (
    ("**", _POW, None),
    ("*", _MUL, None),
    ("//", _IDIV, None),
    ("/", _DIV, None),
    ("%", _MOD, None),
    ("+", _ADD, _POS),
    ("-", _SUB, _NEG),
    ("==", _EQ, None),
    ("!=", _NE, None),
    ("<>", _NE, None),
    (">=", _GE, None),
    ("<=", _LE, None),
    (">>", _RSH, None),
    ("<<", _LSH, None),
    (">", _GT, None),
    ("<", _LT, None),
    ("||", _LOR, None),
    ("&&", _LAND, None),
    ("|", _BOR, None),
    ("&", _BAND, None),
    ("^", _BXOR, None),
    ("~", _BNOT, None),
    ("!", _LNOT, None),
)


# ---------------------------------------------------------------- default functions


def _c_log(fn: Callable[[float], float]) -> Callable[[float], float]:
    def wrapped(x: float) -> float:
        if x == 0.0:
            return -math.inf
        if x < 0.0:
            return math.nan
        return fn(x)

    return wrapped


def _c_safe(fn: Callable[[float], float]) -> Callable[[float], float]:
    def wrapped(x: float) -> float:
        try:
            return fn(x)
        except OverflowError:
            return math.inf
        except ValueError:
            return math.nan

    return wrapped


_DEFAULT_FUNC1: tuple[tuple[str, Callable[[float], float]], ...] = (
    ("exp", _c_safe(math.exp)),
    ("log", _c_log(math.log)),
    ("log10", _c_log(math.log10)),
    ("sqrt", _c_safe(math.sqrt)),
    ("sin", _c_safe(math.sin)),
    ("cos", _c_safe(math.cos)),
    ("tan", _c_safe(math.tan)),
)
_DEFAULT_FUNC2: tuple[tuple[str, Callable[[float, float], float]], ...] = (("pow", _pow),)


# ---------------------------------------------------------------- tokens


class _Kind(Enum):
    VALUE = 1
    OPERATOR = 2
    FUNCTION = 3
    LPAREN = 4


@dataclass
class _Token:
    kind: _Kind
    vtype: int = 0
    op: _OpInfo | None = None
    n_args: int = 0
    name: str | None = None
    i: int = 0
    r: float = 0.0
    s: str | None = None
    assigned: bool = False
    builtin: Callable[[_Slot, _Slot | None], None] | None = field(default=None, repr=False)
    user: Callable[..., float] | None = field(default=None, repr=False)


def _is_name_start(ch: str) -> bool:
    return ch == "_" or (ch.isascii() and ch.isalpha())


def _is_name_char(ch: str) -> bool:
    return ch == "_" or (ch.isascii() and ch.isalnum())


def _read_token(s: str, pos: int, last_is_val: bool) -> tuple[_Token, int]:
    ch = s[pos]
    if _is_name_start(ch):
        end = pos
        while end < len(s) and _is_name_char(s[end]):
            end += 1
        name = s[pos:end]
        if end < len(s) and s[end] == "(":
            return _Token(_Kind.FUNCTION, n_args=1, name=name), end
        return _Token(_Kind.VALUE, vtype=ValueType.REAL, name=name), end
    if ch in _DIGITS or ch == ".":
        y, real_end = _strtod(s, pos)
        x, int_end = _strtol(s, pos)
        if real_end == pos and int_end == pos:
            raise ParseError(BAD_NUMBER)
        if real_end > int_end:
            return _Token(_Kind.VALUE, vtype=ValueType.REAL, i=_round_half(y), r=y), real_end
        return _Token(_Kind.VALUE, vtype=ValueType.INT, i=x, r=y), int_end
    if ch in "\"'":
        q = pos + 1
        while q < len(s) and s[q] != ch:
            if s[q] == "\\":
                q += 1
            q += 1
        if q >= len(s):
            raise ParseError(UNMATCHED_QUOTE)
        return _Token(_Kind.VALUE, vtype=ValueType.STR, s=s[pos + 1:q]), q + 1
    for text, binary, unary in _OPERATORS:
        if s.startswith(text, pos):
            info = binary if unary is None or last_is_val else unary
            token = _Token(_Kind.OPERATOR, op=info, n_args=info.n_args, builtin=info.apply)
            return token, pos + len(text)
    raise ParseError(UNKNOWN_OPERATOR)


def _check_arguments(tokens: Sequence[_Token]) -> None:
    depth = 0
    for token in tokens:
        if token.kind is _Kind.VALUE:
            depth += 1
            continue
        if depth < token.n_args:
            raise ParseError(ARGUMENTS)
        depth -= token.n_args - 1
    if depth != 1:
        raise ParseError(ARGUMENTS)


def parse(text: str) -> Expression:
    """Parse ``text`` into an :class:`Expression`; raise ParseError on failure.

    All whitespace is removed before tokenising, including inside quotes.
    """
    s = "".join(ch for ch in text if ch not in _SPACE)
    out: list[_Token] = []
    ops: list[_Token] = []
    last_is_val = False
    pos = 0
    while pos < len(s):
        ch = s[pos]
        if ch == "(":
            ops.append(_Token(_Kind.LPAREN))
            pos += 1
        elif ch == ")":
            while ops and ops[-1].kind is not _Kind.LPAREN:
                out.append(ops.pop())
            if not ops:
                raise ParseError(UNMATCHED_RIGHT)
            ops.pop()
            if ops and ops[-1].kind is _Kind.FUNCTION:
                func = ops.pop()
                out.append(func)
                if func.n_args == 1 and func.name == "abs":
                    func.builtin = _func_abs
            pos += 1
        elif ch == ",":
            while ops and ops[-1].kind is not _Kind.LPAREN:
                out.append(ops.pop())
            if len(ops) < 2 or ops[-2].kind is not _Kind.FUNCTION:
                raise ParseError(FUNCTION_SYNTAX)
            ops[-2].n_args += 1
            pos += 1
        else:
            token, pos = _read_token(s, pos, last_is_val)
            if token.kind is _Kind.VALUE:
                out.append(token)
                last_is_val = True
            elif token.kind is _Kind.FUNCTION:
                ops.append(token)
                last_is_val = False
            else:
                info = token.op
                while ops and ops[-1].kind is _Kind.OPERATOR:
                    pre = ops[-1].op.precedence
                    if (info.right and info.precedence <= pre) or (
                        not info.right and info.precedence < pre
                    ):
                        break
                    out.append(ops.pop())
                ops.append(token)
                last_is_val = False
    while ops and ops[-1].kind is not _Kind.LPAREN:
        out.append(ops.pop())
    if ops:
        raise ParseError(UNMATCHED_LEFT)
    _check_arguments(out)
    return Expression(out)


# ---------------------------------------------------------------- expression


class Expression:
    """A parsed expression held in reverse Polish order."""

    def __init__(self, tokens: Sequence[_Token]) -> None:
        self._tokens = list(tokens)

    def _variables(self, name: str) -> Iterator[_Token]:
        return (t for t in self._tokens if t.kind is _Kind.VALUE and t.name == name)

    def _functions(self, name: str, n_args: int) -> Iterator[_Token]:
        return (
            t
            for t in self._tokens
            if t.kind is _Kind.FUNCTION and t.n_args == n_args and t.name == name
        )

    def set_int(self, name: str, value: int) -> int:
        """Assign an integer to a variable; return its number of occurrences."""
        value = _wrap(int(value))
        count = 0
        for token in self._variables(name):
            token.i, token.r, token.vtype, token.assigned = value, float(value), ValueType.INT, True
            count += 1
        return count

    def set_real(self, name: str, value: float) -> int:
        """Assign a real number to a variable; return its number of occurrences."""
        value = float(value)
        rounded = _round_half(value)
        count = 0
        for token in self._variables(name):
            token.r, token.i, token.vtype, token.assigned = value, rounded, ValueType.REAL, True
            count += 1
        return count

    def set_str(self, name: str, value: str) -> int:
        """Assign a string to a variable; return its number of occurrences."""
        count = 0
        for token in self._variables(name):
            token.s, token.i, token.r, token.assigned = value, 0, 0.0, True
            token.vtype = ValueType.STR
            count += 1
        return count

    def set_real_func1(self, name: str, func: Callable[[float], float]) -> int:
        """Bind a one-argument real function; return the number of call sites."""
        count = 0
        for token in self._functions(name, 1):
            token.user = func
            count += 1
        return count

    def set_real_func2(self, name: str, func: Callable[[float, float], float]) -> int:
        """Bind a two-argument real function; return the number of call sites."""
        count = 0
        for token in self._functions(name, 2):
            token.user = func
            count += 1
        return count

    def set_default_functions(self) -> int:
        """Bind exp, log, log10, sqrt, sin, cos, tan and pow; return the count bound."""
        total = sum(self.set_real_func1(name, fn) for name, fn in _DEFAULT_FUNC1)
        total += sum(self.set_real_func2(name, fn) for name, fn in _DEFAULT_FUNC2)
        return total

    def unset(self) -> None:
        """Mark every variable as unassigned."""
        for token in self._tokens:
            if token.kind is _Kind.VALUE and token.name:
                token.assigned = False

    def evaluate(self) -> EvalResult:
        """Evaluate the expression.

        Undefined functions return their first argument and unassigned
        variables keep their last value (zero initially); both are reported
        in ``warnings``.
        """
        warnings = 0
        for token in self._tokens:
            if token.kind in (_Kind.OPERATOR, _Kind.FUNCTION):
                if token.builtin is None and token.user is None:
                    warnings |= UNDEFINED_FUNCTION
            elif token.kind is _Kind.VALUE and token.name and not token.assigned:
                warnings |= UNASSIGNED_VARIABLE
        stack: list[_Slot] = []
        for token in self._tokens:
            if token.kind is _Kind.VALUE:
                stack.append(_Slot(token.vtype, token.i, token.r, token.s))
                continue
            defined = token.builtin is not None or token.user is not None
            if token.n_args == 2 and defined:
                q = stack.pop()
                p = stack[-1]
                if token.user is not None:
                    p.r = float(token.user(p.r, q.r))
                    p.i = _round_half(p.r)
                    p.vtype = ValueType.REAL
                else:
                    token.builtin(p, q)
            elif token.n_args == 1 and defined:
                p = stack[-1]
                if token.user is not None:
                    p.r = float(token.user(p.r))
                    p.i = _round_half(p.r)
                    p.vtype = ValueType.REAL
                else:
                    token.builtin(p, None)
            else:
                del stack[len(stack) - (token.n_args - 1):]
        top = stack[0]
        return EvalResult(ValueType(top.vtype), top.i, top.r, top.s, warnings)

    def eval_int(self) -> int:
        """Evaluate and return the integer view of the result."""
        return self.evaluate().int_value

    def eval_real(self) -> float:
        """Evaluate and return the real view of the result."""
        return self.evaluate().real_value

    def rpn(self) -> str:
        """The expression in reverse Polish notation, tokens separated by spaces."""
        parts = []
        for token in self._tokens:
            if token.kind is _Kind.VALUE:
                if token.name:
                    parts.append(token.name)
                elif token.vtype == ValueType.REAL:
                    parts.append(f"{token.r:g}")
                elif token.vtype == ValueType.INT:
                    parts.append(str(token.i))
                else:
                    parts.append(f'"{token.s}"')
            elif token.kind is _Kind.OPERATOR:
                parts.append(token.op.symbol)
            else:
                parts.append(f"{token.name}({token.n_args})")
        return " ".join(parts)


# ---------------------------------------------------------------- command line


def main(argv: Sequence[str] | None = None) -> int:
    """Evaluate an expression given on the command line, with name=value assignments."""
    args = list(sys.argv[1:] if argv is None else argv)
    to_print = False
    index = 0
    while index < len(args):
        arg = args[index]
        if arg == "--":
            index += 1
            break
        if not arg.startswith("-") or arg == "-":
            break
        for flag in arg[1:]:
            if flag == "p":
                to_print = True
            elif flag != "i":
                print(f"invalid option -- '{flag}'", file=sys.stderr)
        index += 1
    if index >= len(args):
        print("Usage: expr [-pi] <expr> [name=value ...]", file=sys.stderr)
        return 1
    try:
        expression = parse(args[index])
    except ParseError as exc:
        print(f"Parse error: 0x{exc.code:x}", file=sys.stderr)
        return 1
    expression.set_default_functions()
    if to_print:
        print(expression.rpn())
        return 0
    for assignment in args[index + 1:]:
        name, sep, value = assignment.partition("=")
        if sep:
            expression.set_real(name, _strtod(value)[0])
    result = expression.evaluate()
    if result.warnings & UNDEFINED_FUNCTION:
        print(
            "Evaluation warning: an undefined function returns the first function argument.",
            file=sys.stderr,
        )
    if result.warnings & UNASSIGNED_VARIABLE:
        print("Evaluation warning: unassigned variables are set to 0.", file=sys.stderr)
    if result.type is ValueType.INT:
        print(result.int_value)
    elif result.type is ValueType.REAL:
        print(f"{result.real_value:g}")
    else:
        print(result.str_value or "")
    return 0