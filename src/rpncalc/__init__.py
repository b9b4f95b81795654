'''
RPN calculator over an arbitrary-precision numeric tower.

Integers, fractions and decimal floats, complex numbers in rectangular and
polar form, vectors and matrices, HMS angles, dates, error forms, intervals,
modulo forms and symbolic formulas, all reduced by one normalize() and kept
on an evaluation stack with undo and redo.
'''

from .arith import add, sub, mul, div
from .context import Context
from .normalize import normalize, last_diagnostic
from .stack import Stack
from .machine import Machine
from .lexer import Lexer
from .cli import CLI


__all__ = ('Context', 'normalize', 'last_diagnostic', 'add', 'sub', 'mul',
           'div', 'Stack', 'Machine', 'Lexer', 'CLI')
