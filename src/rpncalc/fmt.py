'''
Linear text formatting of values.

The output reads back through rpncalc.lexer.parse_value.
'''

from fractions import Fraction
from math import ceil

from .values import (Call, Cplx, Date, Float, HMS, Intv, Mod, Op, Polar,
                     Sdev, Var, Vec, NEG_INF, is_exact, is_matrix,
                     is_negative)


# Binding strength of infix operators; atoms bind tightest.
PRECEDENCE = {
    Op.ASSIGN: 10,
    Op.ADD: 20,
    Op.SUB: 20,
    Op.MUL: 30,
    Op.DIV: 30,
    Op.MOD: 30,
    Op.NEG: 40,
    Op.POW: 50,
}
ATOM = 100

# Floats with a scientific exponent below this are shown in e notation.
SMALLEST_FIXED_EXPONENT = -5


def format_float(x, ctx):
    '''
    '100.', '0.00123', '1.5e-10'
    '''
    mant, exp = x
    sign = '-' if mant < 0 else ''
    digits = str(abs(mant))
    sci = exp + len(digits) - 1 if mant else 0
    if SMALLEST_FIXED_EXPONENT <= sci < ctx.precision:
        if exp >= 0:
            return sign + digits + '0' * exp + '.'
        digits = digits.rjust(1 - exp, '0')
        return sign + digits[:exp] + '.' + digits[exp:]
    head, tail = digits[0], digits[1:]
    return '{}{}{}e{}'.format(sign, head, '.' + tail if tail else '', sci)


def format_exact(q):
    if isinstance(q, Fraction):
        return '{}:{}'.format(q.numerator, q.denominator)
    return str(q)


def _intv(x, ctx):
    return '{}{} .. {}{}'.format('[' if x.lo_closed else '(',
                                 format_value(x.lo, ctx),
                                 format_value(x.hi, ctx),
                                 ']' if x.hi_closed else ')')


def _hms(x, ctx):
    h, m, s = (format_value(part, ctx) for part in x)
    return '{}@ {}\' {}"'.format(h, m, s)


def _precedence(x):
    if isinstance(x, Call) and x.op in PRECEDENCE:
        if x.op != Op.NEG and len(x.args) < 2:
            return ATOM
        return PRECEDENCE[x.op]
    if isinstance(x, (Sdev, Mod)):
        # Looser than any arithmetic operator.
        return PRECEDENCE[Op.ADD] - 1
    if (is_exact(x) or isinstance(x, Float)) and is_negative(x):
        return PRECEDENCE[Op.NEG]
    return ATOM


def _operand(x, ctx, tighter):
    text = format_value(x, ctx)
    if _precedence(x) < tighter:
        return '(' + text + ')'
    return text


def _call(x, ctx):
    op, args = x
    if x == NEG_INF:
        return '-inf'
    if op == Op.NEG and len(args) == 1:
        return '-' + _operand(args[0], ctx, PRECEDENCE[Op.NEG] + 1)
    if op in PRECEDENCE and len(args) >= 2:
        p = PRECEDENCE[op]
        if op == Op.POW:
            left, right = p + 1, p
        else:
            left, right = p, p + 1
        parts = [_operand(args[0], ctx, left)]
        parts.extend(_operand(arg, ctx, right) for arg in args[1:])
        return ' {} '.format(op.value).join(parts)
    name = op.value if isinstance(op, Op) else op
    return '{}({})'.format(name,
                           ', '.join(format_value(arg, ctx) for arg in args))


def format_value(x, ctx):
    '''
    Format a value in linear notation.
    '''
    if is_exact(x):
        return format_exact(x)
    if isinstance(x, Float):
        return format_float(x, ctx)
    if isinstance(x, Cplx):
        return '({}, {})'.format(format_value(x.re, ctx),
                                 format_value(x.im, ctx))
    if isinstance(x, Polar):
        return '({}; {})'.format(format_value(x.r, ctx),
                                 format_value(x.theta, ctx))
    if isinstance(x, Vec):
        return '[' + ', '.join(format_value(item, ctx) for item in x) + ']'
    if isinstance(x, HMS):
        return _hms(x, ctx)
    if isinstance(x, Date):
        return '<{}>'.format(format_value(x.n, ctx))
    if isinstance(x, Sdev):
        return '{} +/- {}'.format(format_value(x.x, ctx),
                                  format_value(x.sigma, ctx))
    if isinstance(x, Intv):
        return _intv(x, ctx)
    if isinstance(x, Mod):
        return '{} mod {}'.format(format_value(x.n, ctx),
                                  format_value(x.m, ctx))
    if isinstance(x, Var):
        return x.name
    if isinstance(x, Call):
        return _call(x, ctx)
    return repr(x)


def height(x, width, ctx):
    '''
    Number of display lines taken by x at the given width.

    Matrices take one line per row; anything else wraps.
    '''
    if is_matrix(x):
        return sum(height(row, width, ctx) for row in x)
    if not width:
        return 1
    return max(1, ceil(len(format_value(x, ctx)) / width))


__all__ = 'format_value', 'format_float', 'height'