from collections import namedtuple
from functools import wraps


class Diagnostic(namedtuple('Diagnostic', 'kind message args')):
    '''
    Recorded explanation of a failed or degraded reduction.
    '''
    __slots__ = ()

    def __str__(self):
        if self.args:
            return '{}: {}'.format(self.message,
                                   ', '.join(map(str, self.args)))
        return self.message


class CalcError(Exception):
    '''
    Base of all calculator errors.

    ``hard`` errors abort the whole command; soft ones leave a symbolic
    result behind.
    '''
    kind = 'error'
    hard = True
    default_message = 'Error'

    def __init__(self, message=None, *args):
        super().__init__(message or self.default_message, *args)

    @property
    def message(self):
        return self.args[0]

    def diagnostic(self):
        return Diagnostic(self.kind, self.message, tuple(self.args[1:]))


class WrongArity(CalcError):
    kind = 'wrong-arity'
    default_message = 'Wrong number of arguments'


class WrongType(CalcError):
    kind = 'wrong-type'
    hard = False
    default_message = 'Wrong type of argument'


class ArgumentOutOfRange(CalcError):
    kind = 'argument-out-of-range'
    default_message = 'Argument out of range'


class InexactResultRequired(CalcError):
    kind = 'inexact-result'
    hard = False
    default_message = 'Result would be inexact'


class Overflow(CalcError):
    kind = 'overflow'
    default_message = 'Floating-point overflow occurred'


class Underflow(CalcError):
    kind = 'underflow'
    default_message = 'Floating-point underflow occurred'


class DimensionMismatch(CalcError):
    kind = 'dimension-mismatch'
    default_message = 'Dimension error'


class DivisionByZero(CalcError):
    kind = 'division-by-zero'
    default_message = 'Division by zero'


class UnboundVariable(CalcError):
    kind = 'unbound-variable'
    hard = False
    default_message = 'Unbound variable'


class SelectionConflict(CalcError):
    kind = 'selection'
    default_message = 'Stack entry has a selection'


class RecursionLimitExceeded(CalcError):
    kind = 'too-deep'
    default_message = 'Computation got stuck or ran too long'


def wrap_user_errors(fmt):
    '''
    Decorator that converts stray exceptions to CalcErrors.

    Passes through CalcErrors. ``fmt`` is formatted with the call's
    arguments, so '{1}' names the first argument after ``self``.
    '''
    def decorator(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except CalcError:
                raise
            except Exception as e:
                raise CalcError(fmt.format(*args, **kwargs), e)
        return wrapper
    return decorator
