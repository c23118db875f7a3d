import math

import pytest

from kitbag import expr
from kitbag.expr import EvalResult, ParseError, ValueType, main, parse


def test_precedence_of_multiplication():
    assert parse("1+2*3").eval_int() == 1 + 2 * 3


def test_subtraction_is_left_associative():
    assert parse("10-4-3").eval_int() == 10 - 4 - 3


def test_power_is_right_associative():
    result = parse("2**3**2").evaluate()
    assert result.type is ValueType.INT
    assert result.int_value == 2**3**2


def test_unary_minus_binds_tighter_than_power():
    assert parse("-2**2").eval_real() == (-2.0) ** 2


def test_integer_division_truncates_toward_zero():
    assert parse("-7//2").eval_int() == int(-7 / 2)


def test_modulo_follows_dividend_sign():
    assert parse("-7%2").eval_int() == int(math.fmod(-7, 2))


def test_real_division():
    result = parse("7/2").evaluate()
    assert result.type is ValueType.REAL
    assert result.real_value == 7 / 2


def test_integer_division_by_zero_raises():
    with pytest.raises(ZeroDivisionError):
        parse("1//0").evaluate()


def test_real_division_by_zero_gives_infinity_or_nan():
    assert math.isinf(parse("1/0").eval_real())
    assert parse("1/0").eval_real() > 0
    assert math.isnan(parse("0/0").eval_real())


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("0x10", 0x10),
        ("010", 0o10),
        ("42", 42),
    ],
)
def test_integer_literals(text, expected):
    result = parse(text).evaluate()
    assert result.type is ValueType.INT
    assert result.int_value == expected


def test_real_literals():
    result = parse("1e3").evaluate()
    assert result.type is ValueType.REAL
    assert result.real_value == 1e3
    quirky = parse("08").evaluate()
    assert quirky.type is ValueType.REAL
    assert quirky.real_value == 8.0


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("1<<4", 1 << 4),
        ("~5", ~5),
        ("!0", int(not 0)),
        ("3&&0", int(bool(3) and bool(0))),
        ("3||0", int(bool(3) or bool(0))),
        ("5|2^3&1", 5 | 2 ^ 3 & 1),
        ("1+1==2", int(1 + 1 == 2)),
        ("2<>3", int(2 != 3)),
        ("2>=3", int(2 >= 3)),
    ],
)
def test_integer_operators(text, expected):
    assert parse(text).eval_int() == expected


def test_string_comparison():
    assert parse("'abc'<'abd'").eval_int() == int("abc" < "abd")
    assert parse("\"x\"==\"x\"").eval_int() == int("x" == "x")


def test_string_value_and_whitespace_squeezed():
    result = parse("'a b'").evaluate()
    assert result.type is ValueType.STR
    assert result.value == "ab"


def test_variables_are_counted_and_assigned():
    e = parse("x*x+y")
    assert e.set_int("x", 3) == 2
    assert e.set_int("y", 4) == 1
    assert e.set_int("z", 1) == 0
    result = e.evaluate()
    assert result.int_value == 3 * 3 + 4
    assert result.warnings == 0


def test_unassigned_variable_warning_and_unset():
    e = parse("x+1")
    unassigned = e.evaluate()
    assert (unassigned.warnings & expr.UNASSIGNED_VARIABLE) == expr.UNASSIGNED_VARIABLE
    assert unassigned.int_value == 1
    assert e.set_int("x", 2) == 1
    assigned = e.evaluate()
    assert (assigned.warnings & expr.UNASSIGNED_VARIABLE) == 0
    assert assigned.int_value == 3
    e.unset()
    again = e.evaluate()
    assert (again.warnings & expr.UNASSIGNED_VARIABLE) == expr.UNASSIGNED_VARIABLE


def test_set_real_makes_real_result():
    e = parse("x/4")
    e.set_real("x", 2.0)
    result = e.evaluate()
    assert result.type is ValueType.REAL
    assert result.real_value == 2.0 / 4


def test_set_str_compares_strings():
    e = parse("name=='bob'")
    assert e.set_str("name", "bob") == 1
    assert e.eval_int() == int("bob" == "bob")
    e.set_str("name", "alice")
    assert e.eval_int() == int("alice" == "bob")


def test_undefined_function_returns_first_argument():
    result = parse("foo(5,6)").evaluate()
    assert result.int_value == 5
    assert result.warnings & expr.UNDEFINED_FUNCTION


def test_default_functions():
    e = parse("sqrt(16)+log(1)")
    assert e.set_default_functions() == 2
    assert e.eval_real() == math.sqrt(16) + math.log(1)


def test_default_pow_and_log_of_zero():
    e = parse("pow(2,10)")
    e.set_default_functions()
    assert e.eval_real() == math.pow(2, 10)
    z = parse("log(0)")
    z.set_default_functions()
    assert z.eval_real() == -math.inf


def test_user_functions():
    e = parse("hyp(3,4)")
    assert e.set_real_func2("hyp", math.hypot) == 1
    assert e.eval_real() == math.hypot(3, 4)
    d = parse("double(21)")
    assert d.set_real_func1("double", lambda x: x * 2) == 1
    result = d.evaluate()
    assert result.type is ValueType.REAL
    assert result.real_value == 21 * 2


def test_builtin_abs():
    result = parse("abs(-5)").evaluate()
    assert result.type is ValueType.INT
    assert result.int_value == abs(-5)
    real = parse("abs(-2.5)").evaluate()
    assert real.type is ValueType.REAL
    assert real.real_value == abs(-2.5)


@pytest.mark.parametrize(
    ("text", "code"),
    [
        ("'abc", expr.UNMATCHED_QUOTE),
        ("(1+2", expr.UNMATCHED_LEFT),
        ("1+2)", expr.UNMATCHED_RIGHT),
        ("1=2", expr.UNKNOWN_OPERATOR),
        ("1,2", expr.FUNCTION_SYNTAX),
        ("1+", expr.ARGUMENTS),
        ("", expr.ARGUMENTS),
        (".", expr.BAD_NUMBER),
    ],
)
def test_parse_errors(text, code):
    with pytest.raises(ParseError) as info:
        parse(text)
    assert info.value.code == code


@pytest.mark.parametrize(
    ("text", "rpn"),
    [
        ("a+b*c", "a b c * +"),
        ("-x", "x -(1)"),
        ("f(1,2)", "1 2 f(2)"),
        ("'s'", '"s"'),
        ("1.5", "1.5"),
        ("x<>y", "x y !="),
    ],
)
def test_rpn(text, rpn):
    assert parse(text).rpn() == rpn


def test_whitespace_is_ignored():
    assert parse(" 1 +\t2 ").rpn() == parse("1+2").rpn()


def test_eval_result_value_property():
    result = EvalResult(ValueType.REAL, 2, 1.5, None)
    assert result.value == 1.5


def test_main_prints_integer(capsys):
    assert main(["1+2"]) == 0
    assert capsys.readouterr().out == f"{1 + 2}\n"


def test_main_with_assignment(capsys):
    assert main(["x*2", "x=1.5"]) == 0
    assert capsys.readouterr().out == f"{1.5 * 2:g}\n"


def test_main_print_rpn(capsys):
    assert main(["-p", "a+b"]) == 0
    assert capsys.readouterr().out == "a b +\n"


def test_main_usage_and_parse_error(capsys):
    assert main([]) == 1
    assert "Usage" in capsys.readouterr().err
    assert main(["(1"]) == 1
    assert f"0x{expr.UNMATCHED_LEFT:x}" in capsys.readouterr().err


def test_main_warns_about_unassigned_variable(capsys):
    assert main(["y"]) == 0
    captured = capsys.readouterr()
    assert "unassigned" in captured.err
    assert captured.out == f"{0.0:g}\n"