'''
Arithmetic over the whole numeric tower.

add, sub, mul and div share one shape: zero short-circuits, the exact
rational path, the float path, the composite forms, and finally a symbolic
formula. Each assumes normalized arguments and returns a normalized result,
or raises a CalcError that the normalizer turns into a diagnostic.
'''

from fractions import Fraction
from functools import reduce
import math

from . import transcend
from .util import (ArgumentOutOfRange, DimensionMismatch, DivisionByZero,
                   InexactResultRequired, WrongType)
from .values import (Call, Cplx, Date, Float, HMS, INF, Intv, Mod, NAN,
                     NEG_INF, Op, Polar, Sdev, UINF, Vec,
                     exact, is_complex, is_constant, is_exact, is_float,
                     is_infinite, is_integer, is_matrix, is_negative, is_one,
                     is_real_number, is_scalar, is_symbolic, is_zero,
                     make_float, numdigs, scale_int, sign, to_exact)


# Float kernels

def _add_float(a, b, ctx):
    '''
    Align exponents and add mantissas.

    An operand more than twice the working precision below the other cannot
    reach the rounded result and is dropped.
    '''
    ediff = a.exp - b.exp
    if ediff >= 0:
        if ediff >= 2 * ctx.precision:
            return a
        return make_float(scale_int(a.mant, ediff) + b.mant, b.exp, ctx)
    ediff = -ediff
    if ediff >= 2 * ctx.precision:
        return b
    return make_float(a.mant + scale_int(b.mant, ediff), a.exp, ctx)


def _mul_float(a, b, ctx):
    return make_float(a.mant * b.mant, a.exp + b.exp, ctx)


def _quotient(n, d):
    q = abs(n) // abs(d)
    return q if (n < 0) == (d < 0) else -q


def _div_float(a, b, ctx):
    # Scale the dividend so the quotient carries precision + 1 digits.
    ldiff = max(ctx.precision + 1 - (numdigs(a.mant) - numdigs(b.mant)), 0)
    return make_float(_quotient(scale_int(a.mant, ldiff), b.mant),
                      a.exp - ldiff - b.exp, ctx)


def _neg_float(a):
    return Float(-a.mant, a.exp)


# Coercion and comparison

def to_float(x, ctx):
    '''
    Convert exact numbers, also inside composite forms, to Floats.
    '''
    if isinstance(x, Float):
        return x
    if is_integer(x):
        return make_float(x, 0, ctx)
    if isinstance(x, Fraction):
        return _div_float(make_float(x.numerator, 0, ctx),
                          make_float(x.denominator, 0, ctx), ctx)
    if isinstance(x, Vec):
        return Vec(to_float(item, ctx) for item in x)
    if isinstance(x, HMS):
        return HMS(x.h, x.m, to_float(x.s, ctx))
    if isinstance(x, Intv):
        return Intv(x.mask, to_float(x.lo, ctx), to_float(x.hi, ctx))
    if isinstance(x, (Cplx, Polar, Date, Sdev, Mod)):
        return type(x)(*(to_float(part, ctx) for part in x))
    if is_infinite(x) or x == NAN:
        return x
    raise WrongType('Expected a number', x)


def compare(a, b, ctx=None):
    '''
    -1, 0 or 1 as real a is less than, equal to or greater than real b.

    Floats compare by exact value. Infinities compare beyond every number.
    '''
    ia, ib = _inf_sign(a), _inf_sign(b)
    if ia or ib:
        ia, ib = ia or 0, ib or 0
        return (ia > ib) - (ia < ib)
    if isinstance(a, HMS) and isinstance(b, HMS):
        a, b = _seconds(a), _seconds(b)
    elif isinstance(a, Date) and isinstance(b, Date):
        a, b = a.n, b.n
    if not (is_real_number(a) and is_real_number(b)):
        raise WrongType('Expected real numbers', a, b)
    a, b = to_exact(a), to_exact(b)
    return (a > b) - (a < b)


def floor(x, ctx=None):
    if not is_real_number(x):
        raise WrongType('Expected a real number', x)
    return math.floor(to_exact(x))


def _floor_quotient(a, b):
    '''
    floor(a / b) computed exactly, whatever the working precision.
    '''
    return math.floor(Fraction(to_exact(a)) / Fraction(to_exact(b)))


def _is_number(x):
    return is_constant(x) and is_scalar(x)


def _is_positive(x):
    return is_real_number(x) and not is_negative(x) and not is_zero(x)


# Infinities

def _inf_sign(x):
    '''
    1 for inf, -1 for -inf, 0 for uinf and None for everything else.
    '''
    if x == INF:
        return 1
    if x == NEG_INF:
        return -1
    if x == UINF:
        return 0
    return None


def _make_inf(direction):
    return {1: INF, -1: NEG_INF}.get(direction, UINF)


def _has_infinity(a, b):
    return NAN in (a, b) or is_infinite(a) or is_infinite(b)


def _direction(x):
    '''
    Direction of a finite constant for infinity arithmetic, or None.
    '''
    if is_real_number(x):
        return sign(x)
    if is_complex(x):
        return 0
    return None


def _infinite_op(op, a, b, ctx):
    '''
    Combine operands of which at least one is an infinity or nan.

    Returns None when the other operand is a formula.
    '''
    if NAN in (a, b):
        return NAN
    ia, ib = _inf_sign(a), _inf_sign(b)
    if ia is None and not _is_number(a) or ib is None and not _is_number(b):
        return None
    if op is Op.ADD:
        if ia is not None and ib is not None:
            return a if ia == ib and ia != 0 else NAN
        return a if ia is not None else b
    if op is Op.MUL:
        da = ia if ia is not None else _direction(a)
        db = ib if ib is not None else _direction(b)
        if da is None or db is None:
            return None
        if is_zero(a) or is_zero(b):
            return NAN
        return _make_inf(da * db)
    # Op.DIV
    if ia is not None and ib is not None:
        return NAN
    if ib is not None:
        return 0
    db = _direction(b)
    if db is None:
        return None
    return _make_inf(ia * db)


def _div_by_zero(a, ctx):
    if ctx.infinite_mode is None:
        raise DivisionByZero()
    if is_zero(a) or a == NAN:
        return NAN
    if ctx.infinite_mode == 'signed':
        if is_real_number(a):
            return _make_inf(sign(a))
        if _inf_sign(a):
            return a
    return UINF


# Constructors of composite forms

def make_vector(items):
    return Vec(items)


def make_complex(re, im, ctx):
    if not (is_real_number(re) and is_real_number(im)):
        raise WrongType('Complex parts must be real numbers', re, im)
    if is_zero(im):
        return re
    return Cplx(re, im)


def _fix_angle(theta, ctx):
    '''
    Fold an angle lying outside (-half-turn, half-turn] back into it.
    '''
    half = transcend.half_turn(ctx)
    if compare(theta, half) <= 0 and compare(theta, neg(half, ctx)) > 0:
        return theta
    full = mul(2, half, ctx)
    turns = _floor_quotient(add(theta, half, ctx), full)
    theta = sub(theta, mul(full, turns, ctx), ctx)
    if compare(theta, neg(half, ctx)) <= 0:
        theta = add(theta, full, ctx)
    return theta


def make_polar(r, theta, ctx):
    if not (is_real_number(r) and is_real_number(theta)):
        raise WrongType('Polar parts must be real numbers', r, theta)
    if is_zero(r):
        return r
    half = transcend.half_turn(ctx)
    if is_negative(r):
        r, theta = neg(r, ctx), add(theta, half, ctx)
    theta = _fix_angle(theta, ctx)
    if is_zero(theta):
        return r
    if compare(theta, half) == 0:
        return neg(r, ctx)
    return Polar(r, theta)


def _seconds(hms):
    '''
    Exact number of seconds in an HMS value.
    '''
    h, m, s = map(to_exact, hms)
    return exact(Fraction(h) * 3600 + Fraction(m) * 60 + s)


def _hms_seconds(x, ctx):
    return add(add(mul(x.h, 3600, ctx), mul(x.m, 60, ctx), ctx), x.s, ctx)


def _hms_from_seconds(t, ctx):
    negative = is_negative(t)
    if negative:
        t = neg(t, ctx)
    h = _floor_quotient(t, 3600)
    t = sub(t, 3600 * h, ctx)
    m = _floor_quotient(t, 60)
    s = sub(t, 60 * m, ctx)
    if negative:
        return HMS(-h, -m, neg(s, ctx))
    return HMS(h, m, s)


def make_hms(h, m, s, ctx):
    '''
    Carry minutes and seconds into [0, 60) and give all parts one sign.
    '''
    if not all(is_real_number(part) for part in (h, m, s)):
        raise WrongType('HMS parts must be real numbers', h, m, s)
    return _hms_from_seconds(_hms_seconds(HMS(h, m, s), ctx), ctx)


def make_date(n, ctx):
    if not is_real_number(n):
        raise WrongType('Date must be a real day count', n)
    return Date(n)


def make_sdev(x, sigma, ctx):
    for part in x, sigma:
        if not (is_real_number(part) or is_symbolic(part)):
            raise WrongType('Error form parts must be real', x, sigma)
    if is_real_number(sigma):
        if is_zero(sigma):
            return x
        if is_negative(sigma):
            sigma = neg(sigma, ctx)
    return Sdev(x, sigma)


def make_intv(mask, lo, hi, ctx):
    '''
    Interval; an empty one is reduced to (lo .. lo).
    '''
    if not is_integer(mask) or not 0 <= mask <= 3:
        raise WrongType('Interval mask must be 0 to 3', mask)
    for end in lo, hi:
        if not (is_real_number(end) or is_infinite(end)):
            raise WrongType('Interval ends must be real', lo, hi)
    cmp = compare(lo, hi)
    if cmp > 0 or cmp == 0 and mask != 3:
        return Intv(0, lo, lo)
    return Intv(mask, lo, hi)


def make_mod(n, m, ctx):
    if not is_real_number(m):
        raise WrongType('Modulus must be a real number', m)
    if not _is_positive(m):
        raise ArgumentOutOfRange('Modulus must be positive', m)
    if isinstance(n, Mod):
        if compare(n.m, m) != 0:
            raise WrongType('Conflicting moduli', n.m, m)
        return n
    if is_symbolic(n):
        return Mod(n, m)
    if not is_real_number(n):
        raise WrongType('Expected a real number', n)
    return Mod(mod(n, m, ctx), m)


# Negation

def _swap_mask(mask):
    return (mask & 1) << 1 | (mask & 2) >> 1


def neg(a, ctx):
    if is_exact(a):
        return -a
    if isinstance(a, Float):
        return _neg_float(a)
    if isinstance(a, Cplx):
        return Cplx(neg(a.re, ctx), neg(a.im, ctx))
    if isinstance(a, Polar):
        return make_polar(a.r, add(a.theta, transcend.half_turn(ctx), ctx),
                          ctx)
    if isinstance(a, Vec):
        return Vec(neg(item, ctx) for item in a)
    if isinstance(a, HMS):
        return HMS(*(neg(part, ctx) for part in a))
    if isinstance(a, Sdev):
        return Sdev(neg(a.x, ctx), a.sigma)
    if isinstance(a, Intv):
        return Intv(_swap_mask(a.mask), neg(a.hi, ctx), neg(a.lo, ctx))
    if isinstance(a, Mod):
        return make_mod(neg(a.n, ctx), a.m, ctx)
    if isinstance(a, Date):
        raise WrongType('Cannot negate a date', a)
    if a == INF:
        return NEG_INF
    if a in (UINF, NAN):
        return a
    if isinstance(a, Call):
        if a.op == Op.NEG:
            return a.args[0]
        if a.op == Op.MUL and _is_number(a.args[0]):
            return mul(neg(a.args[0], ctx), a.args[1], ctx)
        if a.op == Op.SUB:
            return sub(a.args[1], a.args[0], ctx)
    return Call(Op.NEG, (a,))


# Addition and subtraction

def add(a, b, ctx):
    '''
    Sum of a and b.
    '''
    if is_integer(a) and is_integer(b):
        return a + b
    if is_zero(a) and not isinstance(b, Mod):
        return to_float(b, ctx) if is_float(a) and is_exact(b) else b
    if is_zero(b) and not isinstance(a, Mod):
        return to_float(a, ctx) if is_float(b) and is_exact(a) else a
    if is_exact(a) and is_exact(b):
        return exact(a + b)
    if is_real_number(a) and is_real_number(b):
        return _add_float(to_float(a, ctx), to_float(b, ctx), ctx)
    if _has_infinity(a, b):
        result = _infinite_op(Op.ADD, a, b, ctx)
        if result is not None:
            return result
    elif not (is_symbolic(a) or is_symbolic(b)):
        return _add_fancy(a, b, ctx)
    return _add_symbolic(a, b, ctx)


def sub(a, b, ctx):
    '''
    Difference of a and b.
    '''
    if is_integer(a) and is_integer(b):
        return a - b
    if is_zero(b) and not isinstance(a, Mod):
        return to_float(a, ctx) if is_float(b) and is_exact(a) else a
    if is_zero(a) and not isinstance(b, Mod):
        b = neg(b, ctx)
        return to_float(b, ctx) if is_float(a) and is_exact(b) else b
    if is_exact(a) and is_exact(b):
        return exact(a - b)
    if is_real_number(a) and is_real_number(b):
        return _add_float(to_float(a, ctx), _neg_float(to_float(b, ctx)),
                          ctx)
    if isinstance(a, Date) or isinstance(b, Date):
        return _sub_date(a, b, ctx)
    if _has_infinity(a, b):
        result = _infinite_op(Op.ADD, a, neg(b, ctx), ctx)
        if result is not None:
            return result
    elif not (is_symbolic(a) or is_symbolic(b)):
        return add(a, neg(b, ctx), ctx)
    return _sub_symbolic(a, b, ctx)


def _add_fancy(a, b, ctx):
    if isinstance(a, Vec) or isinstance(b, Vec):
        if not (isinstance(a, Vec) and isinstance(b, Vec)):
            raise WrongType('Cannot add a vector and a scalar', a, b)
        if len(a) != len(b):
            raise DimensionMismatch('Vector lengths differ', len(a), len(b))
        return Vec(add(x, y, ctx) for x, y in zip(a, b))
    if isinstance(a, Mod) or isinstance(b, Mod):
        return _mod_op(add, a, b, ctx)
    if isinstance(a, Sdev) or isinstance(b, Sdev):
        return _sdev_add(a, b, ctx)
    if isinstance(a, Intv) or isinstance(b, Intv):
        return _intv_add(a, b, ctx)
    if isinstance(a, Date) or isinstance(b, Date):
        return _add_date(a, b, ctx)
    if isinstance(a, HMS) or isinstance(b, HMS):
        return _hms_add(a, b, ctx)
    if is_complex(a) or is_complex(b):
        return _complex_add(a, b, ctx)
    raise WrongType('Cannot add these', a, b)


def _complex_parts(x, ctx):
    if isinstance(x, Cplx):
        return x.re, x.im
    if isinstance(x, Polar):
        x = to_rect(x, ctx)
        return _complex_parts(x, ctx)
    if is_real_number(x):
        return x, 0
    raise WrongType('Expected a complex number', x)


def _polar_parts(x, ctx):
    if isinstance(x, Polar):
        return x.r, x.theta
    if isinstance(x, Cplx):
        return (_hypot(x.re, x.im, ctx),
                transcend.atan2(x.im, x.re, ctx))
    if is_real_number(x):
        if is_negative(x):
            return neg(x, ctx), transcend.half_turn(ctx)
        return x, 0
    raise WrongType('Expected a complex number', x)


def _complex_add(a, b, ctx):
    ar, ai = _complex_parts(a, ctx)
    br, bi = _complex_parts(b, ctx)
    rect = make_complex(add(ar, br, ctx), add(ai, bi, ctx), ctx)
    if isinstance(a, Polar) or isinstance(b, Polar):
        return to_polar(rect, ctx)
    return rect


def _hms_add(a, b, ctx):
    if isinstance(a, HMS) and isinstance(b, HMS):
        total = add(_hms_seconds(a, ctx), _hms_seconds(b, ctx), ctx)
    elif isinstance(a, HMS) and is_real_number(b):
        total = add(_hms_seconds(a, ctx), mul(b, 3600, ctx), ctx)
    elif isinstance(b, HMS) and is_real_number(a):
        total = add(mul(a, 3600, ctx), _hms_seconds(b, ctx), ctx)
    else:
        raise WrongType('Cannot add these', a, b)
    return _hms_from_seconds(total, ctx)


def _days(x, ctx):
    if isinstance(x, HMS):
        seconds = _hms_seconds(x, ctx)
        if is_exact(seconds):
            return exact(Fraction(seconds) / 86400)
        return div(seconds, 86400, ctx)
    if is_real_number(x):
        return x
    raise WrongType('Expected a number of days', x)


def _add_date(a, b, ctx):
    if isinstance(a, Date) and isinstance(b, Date):
        raise WrongType('Cannot add two dates', a, b)
    if isinstance(a, Date):
        return make_date(add(a.n, _days(b, ctx), ctx), ctx)
    return make_date(add(_days(a, ctx), b.n, ctx), ctx)


def _sub_date(a, b, ctx):
    if isinstance(a, Date) and isinstance(b, Date):
        return sub(a.n, b.n, ctx)
    if isinstance(a, Date) and not is_symbolic(b):
        return make_date(sub(a.n, _days(b, ctx), ctx), ctx)
    if is_symbolic(a) or is_symbolic(b):
        return _sub_symbolic(a, b, ctx)
    raise WrongType('Cannot subtract a date from a non-date', a, b)


def _sdev_add(a, b, ctx):
    if isinstance(a, Sdev) and isinstance(b, Sdev):
        return make_sdev(add(a.x, b.x, ctx), _hypot(a.sigma, b.sigma, ctx),
                         ctx)
    if isinstance(a, Sdev) and is_real_number(b):
        return make_sdev(add(a.x, b, ctx), a.sigma, ctx)
    if isinstance(b, Sdev) and is_real_number(a):
        return make_sdev(add(a, b.x, ctx), b.sigma, ctx)
    raise WrongType('Cannot combine an error form with this', a, b)


def _intv_parts(x):
    '''
    (lo, lo closed, hi, hi closed) of an interval or real number.
    '''
    if isinstance(x, Intv):
        return x.lo, x.lo_closed, x.hi, x.hi_closed
    if is_real_number(x):
        return x, True, x, True
    raise WrongType('Expected an interval or real number', x)


def _mask(lo_closed, hi_closed):
    return lo_closed << 1 | hi_closed


def _intv_add(a, b, ctx):
    alo, alc, ahi, ahc = _intv_parts(a)
    blo, blc, bhi, bhc = _intv_parts(b)
    return make_intv(_mask(alc and blc, ahc and bhc),
                     add(alo, blo, ctx), add(ahi, bhi, ctx), ctx)


def _mod_op(op, a, b, ctx):
    if isinstance(a, Mod) and isinstance(b, Mod):
        if compare(a.m, b.m) != 0:
            raise WrongType('Modulo forms have different moduli', a, b)
        return make_mod(op(a.n, b.n, ctx), a.m, ctx)
    if isinstance(a, Mod) and is_real_number(b):
        return make_mod(op(a.n, b, ctx), a.m, ctx)
    if isinstance(b, Mod) and is_real_number(a):
        return make_mod(op(a, b.n, ctx), b.m, ctx)
    raise WrongType('Cannot combine a modulo form with this', a, b)


# Multiplication

def mul(a, b, ctx):
    '''
    Product of a and b.
    '''
    if is_integer(a) and is_integer(b):
        return a * b
    if is_zero(a) and not isinstance(b, Mod):
        return _mul_zero(a, b, ctx)
    if is_zero(b) and not isinstance(a, Mod):
        return _mul_zero(b, a, ctx)
    if is_exact(a) and is_exact(b):
        return exact(a * b)
    if is_real_number(a) and is_real_number(b):
        return _mul_float(to_float(a, ctx), to_float(b, ctx), ctx)
    if _has_infinity(a, b):
        result = _infinite_op(Op.MUL, a, b, ctx)
        if result is not None:
            return result
    elif not (is_symbolic(a) or is_symbolic(b)):
        return _mul_fancy(a, b, ctx)
    return _mul_symbolic(a, b, ctx)


def _mul_zero(zero, other, ctx):
    if isinstance(other, Vec):
        return Vec(mul(zero, item, ctx) for item in other)
    if is_infinite(other) or other == NAN:
        return NAN
    if is_float(other) and is_exact(zero):
        return to_float(zero, ctx)
    return zero


def _mul_fancy(a, b, ctx):
    if isinstance(a, Vec) and isinstance(b, Vec):
        return _mul_vectors(a, b, ctx)
    if isinstance(a, Vec):
        return Vec(mul(item, b, ctx) for item in a)
    if isinstance(b, Vec):
        return Vec(mul(a, item, ctx) for item in b)
    if isinstance(a, Mod) or isinstance(b, Mod):
        return _mod_op(mul, a, b, ctx)
    if isinstance(a, Sdev) or isinstance(b, Sdev):
        return _sdev_mul(a, b, ctx)
    if isinstance(a, Intv) or isinstance(b, Intv):
        return _intv_mul(a, b, ctx)
    if isinstance(a, HMS) and is_real_number(b):
        return _hms_from_seconds(mul(_hms_seconds(a, ctx), b, ctx), ctx)
    if isinstance(b, HMS) and is_real_number(a):
        return _hms_from_seconds(mul(a, _hms_seconds(b, ctx), ctx), ctx)
    if is_complex(a) or is_complex(b):
        return _complex_mul(a, b, ctx)
    raise WrongType('Cannot multiply these', a, b)


def _dot(u, v, ctx):
    return reduce(lambda total, pair: add(total, mul(*pair, ctx), ctx),
                  zip(u, v), 0)


def _mul_vectors(a, b, ctx):
    '''
    Matrix product, matrix-vector product or dot product.
    '''
    if is_matrix(a) and is_matrix(b):
        if len(a[0]) != len(b):
            raise DimensionMismatch('Matrix dimensions differ',
                                    len(a[0]), len(b))
        columns = list(zip(*b))
        return Vec(Vec(_dot(row, column, ctx) for column in columns)
                   for row in a)
    if is_matrix(a):
        if len(a[0]) != len(b):
            raise DimensionMismatch('Matrix dimensions differ',
                                    len(a[0]), len(b))
        return Vec(_dot(row, b, ctx) for row in a)
    if is_matrix(b):
        if len(a) != len(b):
            raise DimensionMismatch('Matrix dimensions differ',
                                    len(a), len(b))
        return Vec(_dot(a, column, ctx) for column in zip(*b))
    if len(a) != len(b):
        raise DimensionMismatch('Vector lengths differ', len(a), len(b))
    return _dot(a, b, ctx)


def _complex_mul(a, b, ctx):
    if isinstance(a, Polar) or isinstance(b, Polar):
        ar, at = _polar_parts(a, ctx)
        br, bt = _polar_parts(b, ctx)
        return make_polar(mul(ar, br, ctx), add(at, bt, ctx), ctx)
    ar, ai = _complex_parts(a, ctx)
    br, bi = _complex_parts(b, ctx)
    return make_complex(sub(mul(ar, br, ctx), mul(ai, bi, ctx), ctx),
                        add(mul(ar, bi, ctx), mul(ai, br, ctx), ctx), ctx)


def _sdev_mul(a, b, ctx):
    if isinstance(a, Sdev) and isinstance(b, Sdev):
        return make_sdev(mul(a.x, b.x, ctx),
                         _hypot(mul(a.sigma, b.x, ctx),
                                mul(a.x, b.sigma, ctx), ctx), ctx)
    if isinstance(a, Sdev) and is_real_number(b):
        return make_sdev(mul(a.x, b, ctx), mul(a.sigma, b, ctx), ctx)
    if isinstance(b, Sdev) and is_real_number(a):
        return make_sdev(mul(a, b.x, ctx), mul(a, b.sigma, ctx), ctx)
    raise WrongType('Cannot combine an error form with this', a, b)


def _intv_mul(a, b, ctx):
    alo, alc, ahi, ahc = _intv_parts(a)
    blo, blc, bhi, bhc = _intv_parts(b)
    products = [(mul(x, y, ctx), xc and yc)
                for x, xc in ((alo, alc), (ahi, ahc))
                for y, yc in ((blo, blc), (bhi, bhc))]
    if NAN in [p for p, _ in products]:
        raise WrongType('Undefined interval product', a, b)
    lo, lo_closed = products[0]
    hi, hi_closed = products[0]
    for p, closed in products[1:]:
        cmp = compare(p, lo)
        if cmp < 0 or cmp == 0 and closed:
            lo, lo_closed = p, closed
        cmp = compare(p, hi)
        if cmp > 0 or cmp == 0 and closed:
            hi, hi_closed = p, closed
    return make_intv(_mask(lo_closed, hi_closed), lo, hi, ctx)


# Division

def div(a, b, ctx):
    '''
    Quotient of a and b.

    Exact unless floats are involved or, for two integers, the division is
    inexact and ctx.prefer_fractions is off.
    '''
    if is_zero(b):
        return _div_by_zero(a, ctx)
    if is_zero(a) and not isinstance(b, (Mod, Vec)) and b != NAN:
        return to_float(a, ctx) if is_float(b) and is_exact(a) else a
    if is_integer(a) and is_integer(b):
        if a % b == 0:
            return a // b
        if ctx.prefer_fractions:
            return exact(Fraction(a, b))
        return _div_float(to_float(a, ctx), to_float(b, ctx), ctx)
    if is_exact(a) and is_exact(b):
        return exact(Fraction(a) / b)
    if is_real_number(a) and is_real_number(b):
        return _div_float(to_float(a, ctx), to_float(b, ctx), ctx)
    if _has_infinity(a, b):
        result = _infinite_op(Op.DIV, a, b, ctx)
        if result is not None:
            return result
    elif not (is_symbolic(a) or is_symbolic(b)):
        return _div_fancy(a, b, ctx)
    return _div_symbolic(a, b, ctx)


def _div_fancy(a, b, ctx):
    if isinstance(b, Vec):
        raise WrongType('Cannot divide by a vector', a, b)
    if isinstance(a, Vec):
        return Vec(div(item, b, ctx) for item in a)
    if isinstance(a, Mod) or isinstance(b, Mod):
        return _mod_div(a, b, ctx)
    if isinstance(a, Sdev) or isinstance(b, Sdev):
        return _sdev_div(a, b, ctx)
    if isinstance(a, Intv) or isinstance(b, Intv):
        return _intv_div(a, b, ctx)
    if isinstance(a, HMS):
        if isinstance(b, HMS):
            return div(_hms_seconds(a, ctx), _hms_seconds(b, ctx), ctx)
        if is_real_number(b):
            return _hms_from_seconds(div(_hms_seconds(a, ctx), b, ctx),
                                     ctx)
    if is_complex(a) or is_complex(b):
        return _complex_div(a, b, ctx)
    raise WrongType('Cannot divide these', a, b)


def _complex_div(a, b, ctx):
    if isinstance(a, Polar) or isinstance(b, Polar):
        ar, at = _polar_parts(a, ctx)
        br, bt = _polar_parts(b, ctx)
        return make_polar(div(ar, br, ctx), sub(at, bt, ctx), ctx)
    ar, ai = _complex_parts(a, ctx)
    br, bi = _complex_parts(b, ctx)
    if is_zero(bi):
        return make_complex(div(ar, br, ctx), div(ai, br, ctx), ctx)
    denom = add(mul(br, br, ctx), mul(bi, bi, ctx), ctx)
    re = add(mul(ar, br, ctx), mul(ai, bi, ctx), ctx)
    im = sub(mul(ai, br, ctx), mul(ar, bi, ctx), ctx)
    return make_complex(div(re, denom, ctx), div(im, denom, ctx), ctx)


def _mod_div(a, b, ctx):
    if isinstance(a, Mod) and isinstance(b, Mod) and compare(a.m, b.m) != 0:
        raise WrongType('Modulo forms have different moduli', a, b)
    m = a.m if isinstance(a, Mod) else b.m
    an = a.n if isinstance(a, Mod) else a
    bn = b.n if isinstance(b, Mod) else b
    if all(map(is_integer, (an, bn, m))):
        try:
            inverse = pow(bn % m, -1, m)
        except ValueError:
            pass
        else:
            return _mod_op(mul, a, inverse, ctx) if isinstance(a, Mod) \
                else make_mod(an * inverse, m, ctx)
    return _mod_op(div, a, b, ctx)


def _sdev_div(a, b, ctx):
    if isinstance(a, Sdev) and isinstance(b, Sdev):
        q = div(a.x, b.x, ctx)
        return make_sdev(q, div(_hypot(a.sigma, mul(q, b.sigma, ctx), ctx),
                                b.x, ctx), ctx)
    if isinstance(a, Sdev) and is_real_number(b):
        return make_sdev(div(a.x, b, ctx), div(a.sigma, b, ctx), ctx)
    if isinstance(b, Sdev) and is_real_number(a):
        q = div(a, b.x, ctx)
        return make_sdev(q, div(mul(q, b.sigma, ctx), b.x, ctx), ctx)
    raise WrongType('Cannot combine an error form with this', a, b)


def _intv_div(a, b, ctx):
    blo, blc, bhi, bhc = _intv_parts(b)
    if compare(blo, 0) <= 0 <= compare(bhi, 0):
        raise DivisionByZero('Division by an interval containing zero', b)
    reciprocal = make_intv(_mask(bhc, blc), div(1, bhi, ctx),
                           div(1, blo, ctx), ctx)
    return _intv_mul(a, reciprocal, ctx)


# Other operators

def mod(a, b, ctx):
    '''
    Floor modulo: the result has the sign of b.
    '''
    if is_zero(b):
        raise DivisionByZero()
    if is_exact(a) and is_exact(b):
        return exact(a % b)
    if is_real_number(a) and is_real_number(b):
        r = sub(a, mul(b, _floor_quotient(a, b), ctx), ctx)
        # Rounding can land just outside [0, b).
        if compare(r, 0) * sign(b) < 0:
            r = add(r, b, ctx)
        elif compare(r, b) * sign(b) >= 0:
            r = sub(r, b, ctx)
        return r
    if isinstance(a, Mod) and is_real_number(b) and compare(a.m, b) == 0:
        return a.n
    if is_symbolic(a) or is_symbolic(b):
        return Call(Op.MOD, (a, b))
    raise WrongType('Expected real numbers', a, b)


def abs_(a, ctx):
    if is_exact(a):
        return abs(a)
    if isinstance(a, Float):
        return Float(abs(a.mant), a.exp)
    if isinstance(a, Cplx):
        return _hypot(a.re, a.im, ctx)
    if isinstance(a, Polar):
        return a.r
    if isinstance(a, Vec):
        return sqrt(_dot(a, a, ctx), ctx)
    if isinstance(a, HMS):
        return neg(a, ctx) if is_negative(a) else a
    if isinstance(a, Sdev):
        return make_sdev(abs_(a.x, ctx), a.sigma, ctx)
    if isinstance(a, Intv):
        if not is_negative(a.lo):
            return a
        if is_negative(a.hi) or is_zero(a.hi):
            return neg(a, ctx)
        top = a.hi if compare(a.hi, neg(a.lo, ctx)) >= 0 \
            else neg(a.lo, ctx)
        closed = a.hi_closed if top == a.hi else a.lo_closed
        return make_intv(_mask(True, closed), 0, top, ctx)
    if isinstance(a, Mod):
        return a
    if is_infinite(a):
        return INF
    if a == NAN:
        return a
    if is_symbolic(a):
        return Call(Op.ABS, (a,))
    raise WrongType('Expected a number', a)


def _exact_sqrt(q):
    q = Fraction(q)
    num, den = math.isqrt(q.numerator), math.isqrt(q.denominator)
    if num * num == q.numerator and den * den == q.denominator:
        return exact(Fraction(num, den))
    return None


def sqrt(a, ctx):
    if is_real_number(a):
        if is_negative(a):
            return make_complex(0, sqrt(neg(a, ctx), ctx), ctx)
        if is_exact(a):
            root = _exact_sqrt(a)
            if root is not None:
                return root
            if ctx.symbolic:
                raise InexactResultRequired('Square root is inexact', a)
        return transcend.sqrt(a, ctx)
    if is_complex(a):
        r, theta = _polar_parts(a, ctx)
        root = make_polar(sqrt(r, ctx), div(theta, 2, ctx), ctx)
        return root if isinstance(a, Polar) else to_rect(root, ctx)
    if isinstance(a, Sdev):
        root = sqrt(a.x, ctx)
        return make_sdev(root, div(a.sigma, mul(2, root, ctx), ctx), ctx)
    if a == INF:
        return a
    if is_symbolic(a):
        return Call(Op.SQRT, (a,))
    raise WrongType('Expected a number', a)


def _hypot(a, b, ctx):
    return sqrt(add(mul(a, a, ctx), mul(b, b, ctx), ctx), ctx)


def _ipow(a, n, ctx):
    '''
    a ** n for a natural n, by repeated squaring.
    '''
    result = None
    while n:
        if n & 1:
            result = a if result is None else mul(result, a, ctx)
        n >>= 1
        if n:
            a = mul(a, a, ctx)
    return result


def pow_(a, b, ctx):
    '''
    a raised to the power b.
    '''
    if is_integer(b):
        if b == 0:
            return to_float(1, ctx) if is_float(a) else 1
        if b == 1:
            return a
        if is_symbolic(a):
            return _pow_symbolic(a, b, ctx)
        if b < 0:
            return div(1, pow_(a, -b, ctx), ctx)
        if is_exact(a):
            return exact(Fraction(a) ** b)
        if isinstance(a, Mod) and is_integer(a.n) and is_integer(a.m):
            return Mod(pow(a.n, b, a.m), a.m)
        if isinstance(a, Vec) and not is_matrix(a):
            raise WrongType('Only square matrices have powers', a)
        if is_matrix(a) and len(a) != len(a[0]):
            raise DimensionMismatch('Matrix must be square',
                                    len(a), len(a[0]))
        return _ipow(a, b, ctx)
    if isinstance(b, Fraction) and b.denominator == 2 and \
       (is_real_number(a) or is_complex(a)):
        return pow_(sqrt(a, ctx), b.numerator, ctx)
    if is_real_number(a) and is_real_number(b):
        if is_zero(a):
            if is_negative(b):
                return _div_by_zero(1, ctx)
            return a
        if ctx.symbolic:
            raise InexactResultRequired('Power is inexact', a, b)
        if is_negative(a):
            half = transcend.half_turn(ctx)
            return to_rect(make_polar(transcend.power(neg(a, ctx), b, ctx),
                                      mul(b, half, ctx), ctx), ctx)
        return transcend.power(a, b, ctx)
    if is_symbolic(a) or is_symbolic(b):
        return _pow_symbolic(a, b, ctx)
    raise WrongType('Expected numbers', a, b)


def to_polar(a, ctx):
    '''
    Explicit conversion of complex numbers to polar form.
    '''
    if isinstance(a, Cplx):
        r, theta = _polar_parts(a, ctx)
        return make_polar(r, theta, ctx)
    if isinstance(a, Vec):
        return Vec(to_polar(item, ctx) for item in a)
    if isinstance(a, Polar) or is_real_number(a):
        return a
    if is_symbolic(a):
        return Call(Op.POLAR, (a,))
    raise WrongType('Expected a complex number', a)


def to_rect(a, ctx):
    '''
    Explicit conversion of complex numbers to rectangular form.
    '''
    if isinstance(a, Polar):
        c, s = transcend.cos_sin(a.theta, ctx)
        return make_complex(mul(a.r, c, ctx), mul(a.r, s, ctx), ctx)
    if isinstance(a, Vec):
        return Vec(to_rect(item, ctx) for item in a)
    if isinstance(a, Cplx) or is_real_number(a):
        return a
    if is_symbolic(a):
        return Call(Op.RECT, (a,))
    raise WrongType('Expected a complex number', a)


# Formulas

def _coef_term(x):
    '''
    Split x into a numeric coefficient and the rest: 3 y -> (3, y).
    '''
    if isinstance(x, Call):
        if x.op == Op.MUL and len(x.args) == 2 and \
           is_real_number(x.args[0]):
            return x.args[0], x.args[1]
        if x.op == Op.NEG:
            c, term = _coef_term(x.args[0])
            return (-c if is_exact(c) else _neg_float(c)), term
    return 1, x


def _like(u, v):
    return not _is_number(u) and _coef_term(u)[1] == _coef_term(v)[1]


def _add_symbolic(a, b, ctx):
    if is_real_number(b) and is_negative(b):
        return sub(a, neg(b, ctx), ctx)
    if isinstance(b, Call) and b.op == Op.NEG:
        return sub(a, b.args[0], ctx)
    if _like(a, b):
        (ca, term), (cb, _) = _coef_term(a), _coef_term(b)
        return mul(add(ca, cb, ctx), term, ctx)
    if isinstance(a, Call) and a.op in (Op.ADD, Op.SUB):
        u, v = a.args
        if _is_number(v) and _is_number(b) or _like(v, b):
            # (u + v) + b -> u + (v + b), (u - v) + b -> u + (b - v)
            if a.op == Op.ADD:
                return add(u, add(v, b, ctx), ctx)
            return add(u, sub(b, v, ctx), ctx)
        if _like(u, b):
            combine = add if a.op == Op.ADD else sub
            return combine(add(u, b, ctx), v, ctx)
    return Call(Op.ADD, (a, b))


def _sub_symbolic(a, b, ctx):
    if a == b:
        return 0
    if is_real_number(b) and is_negative(b):
        return add(a, neg(b, ctx), ctx)
    if isinstance(b, Call) and b.op == Op.NEG:
        return add(a, b.args[0], ctx)
    if _like(a, b):
        (ca, term), (cb, _) = _coef_term(a), _coef_term(b)
        return mul(sub(ca, cb, ctx), term, ctx)
    if isinstance(a, Call) and a.op in (Op.ADD, Op.SUB):
        u, v = a.args
        if _is_number(v) and _is_number(b) or _like(v, b):
            if a.op == Op.ADD:
                return add(u, sub(v, b, ctx), ctx)
            return sub(u, add(v, b, ctx), ctx)
        if _like(u, b):
            return (add if a.op == Op.ADD else sub)(sub(u, b, ctx), v, ctx)
    return Call(Op.SUB, (a, b))


def _pow_parts(x):
    if isinstance(x, Call) and x.op == Op.POW and is_integer(x.args[1]):
        return x.args[0], x.args[1]
    return x, 1


def _mul_symbolic(a, b, ctx):
    if is_one(a):
        return b
    if is_one(b):
        return a
    if _is_number(b) and not _is_number(a):
        return mul(b, a, ctx)
    if isinstance(a, Call) and a.op == Op.NEG:
        return neg(mul(a.args[0], b, ctx), ctx)
    if isinstance(b, Call) and b.op == Op.NEG:
        return neg(mul(a, b.args[0], ctx), ctx)
    if _is_number(a) and isinstance(b, Call) and b.op == Op.MUL and \
       _is_number(b.args[0]):
        return mul(mul(a, b.args[0], ctx), b.args[1], ctx)
    if not _is_number(b) and isinstance(a, Call) and a.op == Op.MUL and \
       _is_number(a.args[0]):
        return mul(a.args[0], mul(a.args[1], b, ctx), ctx)
    if not _is_number(a):
        (base, m), (other, n) = _pow_parts(a), _pow_parts(b)
        if base == other and m > 0 and n > 0:
            return _pow_symbolic(base, m + n, ctx)
    return Call(Op.MUL, (a, b))


def _exact_quotient(c, d, ctx):
    '''
    c / d if it can be computed without going through floats, else None.
    '''
    if not (is_exact(c) and is_exact(d)) or d == 0:
        return None
    q = Fraction(c) / d
    if q.denominator == 1 or ctx.prefer_fractions or \
       isinstance(c, Fraction) or isinstance(d, Fraction):
        return exact(q)
    return None


def _div_symbolic(a, b, ctx):
    if is_one(b):
        return a
    if isinstance(a, Call) and a.op == Op.NEG:
        return neg(div(a.args[0], b, ctx), ctx)
    if is_real_number(b):
        if isinstance(a, Call) and a.op == Op.MUL and _is_number(a.args[0]):
            q = _exact_quotient(a.args[0], b, ctx)
            if is_float(a.args[0]) or is_float(b):
                q = div(a.args[0], b, ctx)
            if q is not None:
                return mul(q, a.args[1], ctx)
        if isinstance(a, Call) and a.op == Op.DIV and \
           is_real_number(a.args[1]):
            return div(a.args[0], mul(a.args[1], b, ctx), ctx)
    return Call(Op.DIV, (a, b))


def _pow_symbolic(a, b, ctx):
    if is_integer(b):
        if b == 0:
            return 1
        if b == 1:
            return a
        base, n = _pow_parts(a)
        if n != 1:
            return _pow_symbolic(base, n * b, ctx)
    return Call(Op.POW, (a, b))
