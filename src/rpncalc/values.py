'''
The numeric value model.

Integers and exact rationals are plain Python ``int`` and
``fractions.Fraction``. Every other variant is an immutable tuple subclass
whose equality takes the class into account, so that ``Cplx(1, 2)`` and
``Polar(1, 2)`` never compare equal.

Constructors here only need integer arithmetic. Composite constructors that
need the arithmetic operators live in ``rpncalc.arith``.
'''

from collections import namedtuple
from enum import Enum
from fractions import Fraction

from .util import DivisionByZero, Overflow, Underflow, WrongType


class Value(tuple):
    '''
    Base of the non-native value variants.
    '''
    __slots__ = ()

    def __eq__(self, other):
        return type(self) is type(other) and tuple.__eq__(self, other)

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash((type(self).__name__,) + tuple(self))


class Float(Value, namedtuple('Float', 'mant exp')):
    '''
    Decimal float, value = mant * 10**exp.
    '''
    __slots__ = ()


class Cplx(Value, namedtuple('Cplx', 're im')):
    __slots__ = ()


class Polar(Value, namedtuple('Polar', 'r theta')):
    __slots__ = ()


class HMS(Value, namedtuple('HMS', 'h m s')):
    '''
    Hours (or degrees), minutes and seconds.
    '''
    __slots__ = ()


class Date(Value, namedtuple('Date', 'n')):
    '''
    Day count; the fractional part is the time of day.
    '''
    __slots__ = ()


class Sdev(Value, namedtuple('Sdev', 'x sigma')):
    '''
    Error form: a mean with a standard deviation.
    '''
    __slots__ = ()


class Intv(Value, namedtuple('Intv', 'mask lo hi')):
    '''
    Interval. Bit 2 of mask closes the low end, bit 1 the high end.
    '''
    __slots__ = ()

    @property
    def lo_closed(self):
        return bool(self.mask & 2)

    @property
    def hi_closed(self):
        return bool(self.mask & 1)


class Mod(Value, namedtuple('Mod', 'n m')):
    '''
    Modulo form, n taken modulo m.
    '''
    __slots__ = ()


class Var(Value, namedtuple('Var', 'name slot')):
    '''
    Variable, displayed as name, bound through slot.
    '''
    __slots__ = ()


class Call(Value, namedtuple('Call', 'op args')):
    '''
    Symbolic operator or function application.
    '''
    __slots__ = ()


class Vec(Value):
    '''
    Vector; a vector of equal-length vectors is a matrix.
    '''
    __slots__ = ()

    def __new__(cls, items=()):
        return tuple.__new__(cls, items)

    def __repr__(self):
        return 'Vec({!r})'.format(list(self))


class Op(str, Enum):
    '''
    Heads of the built-in operators.
    '''
    ADD = '+'
    SUB = '-'
    MUL = '*'
    DIV = '/'
    MOD = '%'
    POW = '^'
    NEG = 'neg'
    ABS = 'abs'
    SQRT = 'sqrt'
    FLOAT = 'float'
    POLAR = 'polar'
    RECT = 'rect'
    # Never evaluated.
    QUOTE = 'quote'
    LAMBDA = 'lambda'
    ASSIGN = ':='

    @classmethod
    def lookup(cls, name):
        '''
        Return the built-in operator called name, or None.
        '''
        try:
            return cls(name)
        except ValueError:
            return None


INF = Var('inf', 'inf')
UINF = Var('uinf', 'uinf')
NAN = Var('nan', 'nan')
NEG_INF = Call(Op.NEG, (INF,))


def make_var(name, slot=None):
    return Var(name, name if slot is None else slot)


def make_call(op, *args):
    return Call(Op.lookup(op) or op, tuple(args))


# Predicates

def is_integer(x):
    return isinstance(x, int) and not isinstance(x, bool)


def is_exact(x):
    return is_integer(x) or isinstance(x, Fraction)


def is_float(x):
    return isinstance(x, Float)


def is_real_number(x):
    return is_exact(x) or isinstance(x, Float)


def is_complex(x):
    return isinstance(x, (Cplx, Polar))


def is_real(x):
    '''
    Real-valued scalar: numbers and the non-complex composite forms.
    '''
    if is_real_number(x) or isinstance(x, (HMS, Date, Intv, Mod)):
        return True
    return isinstance(x, Sdev) and not is_complex(x.x)


def is_scalar(x):
    return is_real(x) or is_complex(x) or isinstance(x, Sdev)


def is_vector(x):
    return isinstance(x, Vec)


def is_matrix(x):
    return (isinstance(x, Vec) and len(x) > 0 and
            all(isinstance(row, Vec) for row in x) and
            len(set(map(len, x))) == 1)


def is_symbolic(x):
    return isinstance(x, (Var, Call))


def is_constant(x):
    '''
    True if x mentions no variables or formulas at any depth.
    '''
    if is_symbolic(x):
        return False
    if isinstance(x, Value) and not isinstance(x, Float):
        return all(is_constant(part) for part in x)
    return True


def is_infinite(x):
    return x == INF or x == UINF or x == NEG_INF


def is_nan(x):
    return x == NAN


def is_zero(x):
    if is_exact(x):
        return x == 0
    if isinstance(x, Float):
        return x.mant == 0
    return False


def is_one(x):
    return is_exact(x) and x == 1


def is_negative(x):
    '''
    True if x is, or looks like, a negative quantity.
    '''
    if is_exact(x):
        return x < 0
    if isinstance(x, Float):
        return x.mant < 0
    if isinstance(x, HMS):
        return any(is_negative(part) for part in x)
    if isinstance(x, Date):
        return is_negative(x.n)
    if isinstance(x, Sdev):
        return is_negative(x.x)
    if isinstance(x, Intv):
        return is_negative(x.hi) or (is_zero(x.hi) and not x.hi_closed)
    if isinstance(x, Call):
        if x.op == Op.NEG:
            return True
        if x.op in (Op.MUL, Op.DIV) and len(x.args) == 2:
            return is_negative(x.args[0])
    return False


# Exact numbers

def make_integer(n):
    if not is_integer(n):
        raise WrongType('Expected an integer', n)
    return n


def exact(q):
    '''
    Canonical form of an exact rational: an int when the denominator is 1.
    '''
    if isinstance(q, Fraction) and q.denominator == 1:
        return q.numerator
    return q


def make_frac(num, den):
    if not (is_integer(num) and is_integer(den)):
        raise WrongType('Fraction parts must be integers', num, den)
    if den == 0:
        raise DivisionByZero()
    return exact(Fraction(num, den))


# Floats

def numdigs(n):
    '''
    Number of decimal digits in abs(n); zero has none.
    '''
    if n == 0:
        return 0
    return len(str(abs(n)))


def scale_int(n, d):
    '''
    n * 10**d, truncating toward zero when d is negative.
    '''
    if d >= 0:
        return n * 10 ** d
    q = abs(n) // 10 ** -d
    return -q if n < 0 else q


def scale_rounding(n, d):
    '''
    n * 10**d, rounding half away from zero when d is negative.
    '''
    if d >= 0:
        return n * 10 ** d
    q, r = divmod(abs(n), 10 ** -d)
    if 2 * r >= 10 ** -d:
        q += 1
    return -q if n < 0 else q


def make_float(mant, exp, ctx):
    '''
    Build a Float rounded to the working precision.

    Strips trailing zeros, and raises Overflow or Underflow when the
    scientific exponent leaves +/-ctx.MAX_EXPONENT.
    '''
    if not (is_integer(mant) and is_integer(exp)):
        raise WrongType('Float parts must be integers', mant, exp)
    if mant == 0:
        return Float(0, 0)
    ldiff = ctx.precision - numdigs(mant)
    if ldiff < 0:
        mant = scale_rounding(mant, ldiff)
        exp -= ldiff
    while mant % 10 == 0:
        mant //= 10
        exp += 1
    e = exp + numdigs(mant) - 1
    if e > ctx.MAX_EXPONENT:
        raise Overflow()
    if e < -ctx.MAX_EXPONENT:
        raise Underflow()
    return Float(mant, exp)


def to_exact(x):
    '''
    Exact rational value of a real number.
    '''
    if isinstance(x, Float):
        if x.exp >= 0:
            return x.mant * 10 ** x.exp
        return exact(Fraction(x.mant, 10 ** -x.exp))
    if is_exact(x):
        return x
    raise WrongType('Expected a real number', x)


def sign(x):
    '''
    -1, 0 or 1 for a real number.
    '''
    if isinstance(x, Float):
        x = x.mant
    if not is_exact(x):
        raise WrongType('Expected a real number', x)
    return (x > 0) - (x < 0)
