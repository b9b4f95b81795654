'''
Arithmetic tests
'''

from fractions import Fraction

from rpncalc import transcend
from rpncalc.arith import (add, sub, mul, div, mod, neg, abs_, sqrt, pow_,
                           compare, to_float, to_polar, to_rect,
                           make_complex, make_hms, make_intv, make_mod,
                           make_polar, make_sdev)
from rpncalc.context import Context
from rpncalc.util import (DimensionMismatch, DivisionByZero,
                          InexactResultRequired, Overflow, WrongType)
from rpncalc.values import (Call, Cplx, Date, Float, HMS, INF, Intv, Mod,
                            NAN, NEG_INF, Op, Polar, Sdev, UINF, Vec,
                            make_var)

from pytest import raises


x = make_var('x')
y = make_var('y')


def test_integers_stay_integers(ctx):
    assert add(2, 3, ctx) == 5
    assert mul(-4, 5, ctx) == -20
    assert div(6, 3, ctx) == 2
    assert type(div(6, 3, ctx)) is int


def test_fractions(ctx):
    assert add(1, Fraction(1, 2), ctx) == Fraction(3, 2)
    assert add(Fraction(1, 2), Fraction(1, 2), ctx) == 1
    assert type(add(Fraction(1, 2), Fraction(1, 2), ctx)) is int
    assert div(Fraction(1, 3), 3, ctx) == Fraction(1, 9)


def test_prefer_fractions():
    ctx = Context(prefer_fractions=True)
    assert div(Fraction(1, 3), 3, ctx) == Fraction(1, 9)
    assert div(1, 3, ctx) == Fraction(1, 3)


def test_inexact_integer_division_is_float(ctx):
    assert div(1, 3, ctx) == Float(333333333333, -12)
    assert div(2, 3, ctx) == Float(666666666667, -12)


def test_exact_with_float_coerces_to_float(ctx):
    assert add(1, Float(5, -1), ctx) == Float(15, -1)
    assert mul(Fraction(1, 2), Float(2, 0), ctx) == Float(1, 0)
    assert add(0, Float(5, -1), ctx) == Float(5, -1)
    assert add(Float(0, 0), 3, ctx) == Float(3, 0)


def test_float_absorption(ctx):
    assert add(Float(1, 0), Float(1, -13), ctx) == Float(1, 0)
    assert add(Float(1, 0), Float(1, -30), ctx) == Float(1, 0)


def test_float_carry_rounds_to_precision(ctx):
    assert add(Float(999999999999, 0), Float(1, 0), ctx) == Float(1, 12)
    assert add(Float(999999999999, 0), Float(999999999999, -1), ctx) == \
        Float(11, 11)


def test_float_subtraction_cancels(ctx):
    assert sub(Float(15, -1), Float(5, -1), ctx) == Float(1, 0)
    assert sub(Float(15, -1), Float(15, -1), ctx) == Float(0, 0)


def test_float_overflow(ctx):
    big = Float(1, ctx.MAX_EXPONENT)
    with raises(Overflow):
        mul(big, Float(1, 1), ctx)


def test_division_by_zero(ctx):
    with raises(DivisionByZero):
        div(1, 0, ctx)
    with raises(DivisionByZero):
        div(0, 0, ctx)
    with raises(DivisionByZero):
        mod(5, 0, ctx)
    with raises(DivisionByZero):
        div(Float(15, -1), 0, ctx)
    with raises(DivisionByZero):
        div(Float(15, -1), Float(0, 0), ctx)


def test_infinite_mode():
    ctx = Context(infinite_mode='signed')
    assert div(1, 0, ctx) == INF
    assert div(-1, 0, ctx) == NEG_INF
    assert div(0, 0, ctx) == NAN
    ctx.infinite_mode = 'undirected'
    assert div(1, 0, ctx) == UINF


def test_infinity_arithmetic(ctx):
    assert add(INF, 5, ctx) == INF
    assert add(INF, NEG_INF, ctx) == NAN
    assert mul(INF, -2, ctx) == NEG_INF
    assert mul(INF, 0, ctx) == NAN
    assert div(5, INF, ctx) == 0
    assert neg(INF, ctx) == NEG_INF
    assert compare(NEG_INF, -10 ** 100) < 0


def test_complex(ctx):
    assert mul(Cplx(1, 2), Cplx(3, 4), ctx) == Cplx(-5, 10)
    assert mul(Cplx(1, 1), Cplx(1, -1), ctx) == 2
    assert add(Cplx(1, 2), Cplx(1, -2), ctx) == 2
    assert div(Cplx(1, 1), Cplx(1, 1), ctx) == 1
    assert make_complex(3, 0, ctx) == 3


def test_polar_product_keeps_angle(ctx):
    quarter = div(transcend.pi(ctx), 2, ctx)
    assert mul(Polar(2, 0), Polar(3, quarter), ctx) == Polar(6, quarter)


def test_polar_normalization(ctx):
    assert make_polar(0, 1, ctx) == 0
    assert make_polar(5, 0, ctx) == 5
    assert make_polar(5, 180, Context(angle_mode='deg')) == -5
    assert make_polar(2, 270, Context(angle_mode='deg')) == Polar(2, -90)


def test_polar_rect_conversion():
    ctx = Context(angle_mode='deg')
    assert to_polar(Cplx(0, 2), ctx) == Polar(2, Float(9, 1))
    rect = to_rect(Polar(2, 90), ctx)
    assert rect.im == Float(2, 0)
    assert compare(abs_(rect.re, ctx), Float(1, -10)) < 0


def test_vectors(ctx):
    assert add(Vec([1, 2]), Vec([3, 4]), ctx) == Vec([4, 6])
    assert mul(Vec([1, 2]), Vec([3, 4]), ctx) == 11
    assert mul(2, Vec([1, 2]), ctx) == Vec([2, 4])
    with raises(DimensionMismatch):
        add(Vec([1]), Vec([1, 2]), ctx)
    with raises(WrongType):
        add(Vec([1]), 1, ctx)


def test_matrix_product(ctx):
    a = Vec([Vec([1, 2]), Vec([3, 4])])
    assert mul(a, a, ctx) == Vec([Vec([7, 10]), Vec([15, 22])])
    assert mul(a, Vec([1, 1]), ctx) == Vec([3, 7])
    assert pow_(a, 2, ctx) == mul(a, a, ctx)


def test_hms(ctx):
    assert make_hms(1, 90, 0, ctx) == HMS(2, 30, 0)
    assert add(HMS(1, 45, 0), HMS(0, 30, 0), ctx) == HMS(2, 15, 0)
    assert neg(HMS(1, 2, 3), ctx) == HMS(-1, -2, -3)
    assert make_hms(0, 0, -90, ctx) == HMS(0, -1, -30)


def test_dates(ctx):
    assert sub(Date(10), Date(3), ctx) == 7
    assert add(Date(10), 2, ctx) == Date(12)
    assert add(Date(10), HMS(12, 0, 0), ctx) == Date(Fraction(21, 2))
    with raises(WrongType):
        add(Date(1), Date(2), ctx)


def test_error_forms(ctx):
    assert add(Sdev(1, 3), Sdev(2, 4), ctx) == Sdev(3, 5)
    assert mul(Sdev(2, 1), 3, ctx) == Sdev(6, 3)
    assert make_sdev(4, 0, ctx) == 4
    assert make_sdev(4, -1, ctx) == Sdev(4, 1)


def test_intervals(ctx):
    assert add(Intv(3, 1, 2), Intv(3, 10, 20), ctx) == Intv(3, 11, 22)
    assert mul(Intv(3, -1, 2), Intv(3, 3, 4), ctx) == Intv(3, -4, 8)
    assert neg(Intv(2, 1, 2), ctx) == Intv(1, -2, -1)
    assert make_intv(3, 2, 1, ctx) == Intv(0, 2, 2)
    assert make_intv(2, 1, 1, ctx) == Intv(0, 1, 1)
    with raises(DivisionByZero):
        div(1, Intv(3, -1, 1), ctx)


def test_modulo_forms(ctx):
    assert make_mod(12, 7, ctx) == Mod(5, 7)
    assert make_mod(-1, 7, ctx) == Mod(6, 7)
    assert add(Mod(5, 7), Mod(4, 7), ctx) == Mod(2, 7)
    assert div(Mod(3, 7), Mod(5, 7), ctx) == Mod(2, 7)
    assert pow_(Mod(3, 7), 3, ctx) == Mod(6, 7)
    with raises(WrongType):
        div(Mod(3, 7), Mod(2, 5), ctx)
    with raises(WrongType):
        mul(Mod(3, 7), Mod(2, 5), ctx)


def test_floor_modulo(ctx):
    assert mod(7, 3, ctx) == 1
    assert mod(-7, 3, ctx) == 2
    assert mod(7, -3, ctx) == -2
    assert mod(Float(75, -1), 2, ctx) == Float(15, -1)


def test_sqrt(ctx):
    assert sqrt(4, ctx) == 2
    assert sqrt(Fraction(9, 4), ctx) == Fraction(3, 2)
    assert sqrt(-4, ctx) == Cplx(0, 2)
    assert sqrt(2, ctx) == Float(141421356237, -11)
    with raises(InexactResultRequired):
        sqrt(2, Context(symbolic=True))


def test_powers(ctx):
    assert pow_(2, 10, ctx) == 1024
    assert pow_(2, -2, ctx) == Float(25, -2)
    assert pow_(Fraction(1, 2), -2, ctx) == 4
    assert pow_(4, Fraction(1, 2), ctx) == 2
    assert pow_(Float(2, 0), 0, ctx) == Float(1, 0)


def test_abs(ctx):
    assert abs_(-3, ctx) == 3
    assert abs_(Cplx(3, 4), ctx) == 5
    assert abs_(Vec([3, 4]), ctx) == 5
    assert abs_(Intv(3, -3, 2), ctx) == Intv(3, 0, 3)


def test_symbolic_sums(ctx):
    assert add(x, x, ctx) == Call(Op.MUL, (2, x))
    assert sub(x, x, ctx) == 0
    assert add(x, 1, ctx) == Call(Op.ADD, (x, 1))
    assert add(add(x, 1, ctx), 2, ctx) == Call(Op.ADD, (x, 3))
    assert sub(add(x, 3, ctx), 3, ctx) == x
    assert add(x, -2, ctx) == Call(Op.SUB, (x, 2))


def test_symbolic_products(ctx):
    assert mul(x, 3, ctx) == Call(Op.MUL, (3, x))
    assert mul(x, x, ctx) == Call(Op.POW, (x, 2))
    assert mul(2, mul(3, x, ctx), ctx) == Call(Op.MUL, (6, x))
    assert mul(1, y, ctx) == y
    assert div(mul(4, x, ctx), 2, ctx) == Call(Op.MUL, (2, x))
    assert pow_(pow_(x, 2, ctx), 3, ctx) == Call(Op.POW, (x, 6))


def test_to_float(ctx):
    assert to_float(Fraction(1, 4), ctx) == Float(25, -2)
    assert to_float(Vec([1, Fraction(1, 2)]), ctx) == \
        Vec([Float(1, 0), Float(5, -1)])
