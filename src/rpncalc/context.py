'''
Calculator state shared by normalization, arithmetic and the stack.

One Context is threaded explicitly through every call instead of living in
module globals. It is not thread-safe, and does not need to be: a session
runs one command at a time.
'''

from contextlib import contextmanager
import logging

from .util import (ArgumentOutOfRange, RecursionLimitExceeded, WrongType)


logger = logging.getLogger(__name__)


class Context:
    '''
    Working precision, mode flags, variable bindings and the "why" buffer.
    '''

    DEFAULT_PRECISION = 12
    DEFAULT_PREFER_FRACTIONS = False
    # None (division by zero is an error), 'undirected' (x/0 is uinf) or
    # 'signed' (x/0 is inf or -inf, zero treated as positive zero).
    DEFAULT_INFINITE_MODE = None
    INFINITE_MODES = (None, 'undirected', 'signed')
    DEFAULT_ANGLE_MODE = 'rad'
    ANGLE_MODES = ('rad', 'deg')
    DEFAULT_SYMBOLIC = False
    DEFAULT_UNDO_DEPTH = 100
    # Python frames per normalization level are a small constant, so this
    # stays well below sys.getrecursionlimit().
    DEFAULT_MAX_DEPTH = 200
    # Largest magnitude of a float's scientific exponent.
    MAX_EXPONENT = 3999999
    # Variable holding the user's evaluation rules.
    RULES_VARIABLE = 'EvalRules'

    def __init__(self, *,
                 precision=DEFAULT_PRECISION,
                 prefer_fractions=DEFAULT_PREFER_FRACTIONS,
                 infinite_mode=DEFAULT_INFINITE_MODE,
                 angle_mode=DEFAULT_ANGLE_MODE,
                 symbolic=DEFAULT_SYMBOLIC,
                 undo_depth=DEFAULT_UNDO_DEPTH,
                 max_depth=DEFAULT_MAX_DEPTH):
        self.precision = precision
        self.prefer_fractions = bool(prefer_fractions)
        self.infinite_mode = infinite_mode
        self.angle_mode = angle_mode
        self.symbolic = bool(symbolic)
        self.undo_depth = undo_depth
        self.max_depth = max_depth
        self.depth = 0
        self.why = []
        self.failure = None
        self.variables = {}
        self.generations = {}
        self.functions = {}
        self.rule_cache = None

    @property
    def precision(self):
        return self._precision

    @precision.setter
    def precision(self, precision):
        if isinstance(precision, bool) or not isinstance(precision, int) \
           or precision < 1:
            raise ArgumentOutOfRange('Precision must be a positive integer',
                                     precision)
        self._precision = precision

    @property
    def infinite_mode(self):
        return self._infinite_mode

    @infinite_mode.setter
    def infinite_mode(self, mode):
        if mode not in self.INFINITE_MODES:
            raise WrongType('Unknown infinite mode', mode)
        self._infinite_mode = mode

    @property
    def angle_mode(self):
        return self._angle_mode

    @angle_mode.setter
    def angle_mode(self, mode):
        if mode not in self.ANGLE_MODES:
            raise WrongType('Unknown angle mode', mode)
        self._angle_mode = mode

    @property
    def undo_depth(self):
        return self._undo_depth

    @undo_depth.setter
    def undo_depth(self, depth):
        if isinstance(depth, bool) or not isinstance(depth, int) or \
           depth < 0:
            raise ArgumentOutOfRange('Undo depth must be a natural number',
                                     depth)
        self._undo_depth = depth

    # Diagnostics

    def record(self, error):
        '''
        Record a CalcError in the why buffer.

        The first hard error of a command is kept as ``failure``.
        '''
        diagnostic = error.diagnostic()
        logger.debug('why: %s', diagnostic)
        self.why.append(diagnostic)
        if error.hard and self.failure is None:
            self.failure = error
        return diagnostic

    def clear_why(self):
        del self.why[:]
        self.failure = None

    def last_diagnostic(self):
        return self.why[-1] if self.why else None

    # Variables

    def bind(self, slot, value):
        self.variables[slot] = value
        self.generations[slot] = self.generations.get(slot, 0) + 1

    def unbind(self, slot):
        if self.variables.pop(slot, None) is not None:
            self.generations[slot] = self.generations.get(slot, 0) + 1

    def lookup(self, slot):
        return self.variables.get(slot)

    def generation(self, slot):
        return self.generations.get(slot, 0)

    def define(self, name, params, body):
        '''
        Define user function ``name`` of parameter names ``params``.
        '''
        self.functions[name] = (tuple(params), body)

    def undefine(self, name):
        self.functions.pop(name, None)

    @contextmanager
    def descend(self):
        '''
        Guard one level of recursive normalization.
        '''
        if self.depth >= self.max_depth:
            raise RecursionLimitExceeded()
        self.depth += 1
        try:
            yield
        finally:
            self.depth -= 1
