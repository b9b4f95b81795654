'''
Transcendental functions at the working precision, computed with mpmath.

Values cross into mpmath as mpf numbers and come back as exactly converted
Floats, rounded once by make_float.
'''

import mpmath

from .util import Overflow, WrongType
from .values import Float, is_exact, make_float


# Extra decimal digits carried inside mpmath before rounding back.
GUARD_DIGITS = 5


def workdps(ctx):
    return mpmath.workdps(ctx.precision + GUARD_DIGITS)


def to_mpf(x):
    if isinstance(x, Float):
        return mpmath.mpf('{}e{}'.format(x.mant, x.exp))
    if is_exact(x):
        return mpmath.mpf(x.numerator) / x.denominator
    raise WrongType('Expected a real number', x)


def from_mpf(v, ctx):
    '''
    Exact conversion of a finite mpf to a Float at the working precision.
    '''
    if mpmath.isinf(v) or mpmath.isnan(v):
        raise Overflow()
    sign, man, exp, _ = v._mpf_
    man = -int(man) if sign else int(man)
    if exp >= 0:
        return make_float(man << exp, 0, ctx)
    return make_float(man * 5 ** -exp, exp, ctx)


def pi(ctx):
    with workdps(ctx):
        return from_mpf(+mpmath.pi, ctx)


def e(ctx):
    with workdps(ctx):
        return from_mpf(+mpmath.e, ctx)


def half_turn(ctx):
    '''
    The angle of a negative real: pi radians, or exactly 180 degrees.
    '''
    if ctx.angle_mode == 'deg':
        return 180
    return pi(ctx)


def sqrt(x, ctx):
    with workdps(ctx):
        return from_mpf(mpmath.sqrt(to_mpf(x)), ctx)


def hypot(a, b, ctx):
    with workdps(ctx):
        return from_mpf(mpmath.hypot(to_mpf(a), to_mpf(b)), ctx)


def atan2(y, x, ctx):
    '''
    Angle of the point (x, y) in the current angle mode.
    '''
    with workdps(ctx):
        theta = mpmath.atan2(to_mpf(y), to_mpf(x))
        if ctx.angle_mode == 'deg':
            theta = mpmath.degrees(theta)
        return from_mpf(theta, ctx)


def cos_sin(theta, ctx):
    '''
    Cosine and sine of an angle in the current angle mode.
    '''
    with workdps(ctx):
        theta = to_mpf(theta)
        if ctx.angle_mode == 'deg':
            theta = mpmath.radians(theta)
        return (from_mpf(mpmath.cos(theta), ctx),
                from_mpf(mpmath.sin(theta), ctx))


def power(x, y, ctx):
    '''
    Real x raised to real y; x must not be negative.
    '''
    with workdps(ctx):
        return from_mpf(mpmath.power(to_mpf(x), to_mpf(y)), ctx)
