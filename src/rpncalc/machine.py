from collections import deque
from inspect import signature as getsignature, Parameter
from sys import stdout, stderr
import logging

from .context import Context
from .fmt import format_value
from .normalize import BUILTINS as NORMALIZER_BUILTINS, normalize
from .reader import NAME, parse_value
from .stack import Stack
from .util import CalcError, UnboundVariable, WrongType, wrap_user_errors
from .values import Call, Op, Var, Vec, is_integer, make_var


logger = logging.getLogger(__name__)


class Machine:
    '''
    Arithmetic stack machine (RPN calculator).

    Takes lexemes and runs them, each as one undoable command.
    '''

    # Operator symbols
    BUILTINS = {
        '+': Op.ADD,
        '-': Op.SUB,
        '_': Op.NEG,
        '*': Op.MUL,
        '/': Op.DIV,
        '%': Op.MOD,
        '^': Op.POW,
    }

    # Aliases to oft used functions, so we don't need to type out their full
    # name, quoted, and apply each time.
    SHORTHAND = {
        # 'v', like in UNIX dc.
        'v': Op.SQRT,
        'a': Op.ABS,
        'N': Op.FLOAT,
    }

    def __init__(self, ctx=None, verbose=None, out=stdout):
        '''
        Create empty stack machine.

        :param verbose: Show stack traces on bad user commands.
        '''
        self.ctx = ctx if ctx is not None else Context()
        self.stack = Stack(self.ctx)
        self.verbose = verbose
        self.out = out
        self.why = []

    def command(self, f, *args):
        '''
        Run f as one command: all or nothing, undoable as a whole.

        Raises the first hard failure recorded while running it.
        '''
        self.ctx.clear_why()
        try:
            with self.stack.command(owner=self):
                result = f(*args)
                if self.ctx.failure is not None:
                    raise self.ctx.failure
        finally:
            self.why = list(self.ctx.why)
        return result

    def feed(self, groups):
        '''
        Stack or run lexemes on machine.

        :param groups: regex Match groups of one lexeme.
        '''
        operator = groups.get('operator')
        if operator in type(self).DIRECT:
            return type(self).DIRECT[operator](self)
        return self.command(self._feed, groups)

    def _feed(self, groups):
        parsed = self.parse(groups)
        if self.isstackable(groups):
            self.stack.push([parsed])
        else:
            self._apply(parsed)

    def parse(self, groups):
        '''
        Parse lexeme match into objects for machine: values, operators, etc.
        '''
        if 'str' in groups:
            text = groups['__str__'].replace("\\'", "'")
            # A bare name is pushed as the variable itself, unevaluated.
            if NAME.fullmatch(text.strip()):
                return make_var(text.strip())
            return self._iconvert(text)
        elif 'number' in groups:
            return self._iconvert(groups['number'].replace('_', ''))
        elif 'operator' in groups:
            return type(self).OPERATORS[groups['operator']]
        elif 'apply' in groups:
            return type(self).apply

    def isstackable(self, groups):
        '''
        Return true if stackable lexeme (e.g., number), rather than runnable.
        '''
        return bool(groups.keys() & {'str', 'number'})

    def _arity(self, f):
        '''
        Return number of arguments f pops off the stack.
        '''
        if isinstance(f, Op):
            arity = NORMALIZER_BUILTINS[f][1]
            return 2 if arity is None else arity
        signature = getsignature(f)
        positionals = [parameter
                       for parameter
                       in list(signature.parameters.values())[1:]
                       if parameter.kind == Parameter.POSITIONAL_OR_KEYWORD and
                          parameter.default == Parameter.empty]
        return len(positionals)

    def _apply(self, parsed):
        '''
        Apply parsed lexeme to stack, popping arguments as needed.
        '''
        args = self.stack.pop(self._arity(parsed))
        if isinstance(parsed, Op):
            res = self.evaluate(Call(parsed, tuple(args)))
        else:
            res = parsed(self, *args)
        if res is not None:
            self.stack.push([res])

    def evaluate(self, node):
        return normalize(node, self.ctx)

    def apply(self, name):
        '''
        Run the function named on top of the stack, popping more arguments as
        needed.
        '''
        name = self._name(name)
        op = Op.lookup(name)
        if op in NORMALIZER_BUILTINS:
            return self._apply(op)
        definition = self.ctx.functions.get(name)
        if definition is None:
            raise CalcError('No such function {}'.format(name))
        args = self.stack.pop(len(definition[0]))
        logger.debug('calling %s with %d argument(s)', name, len(args))
        self.stack.push([self.evaluate(Call(name, tuple(args)))])

    @wrap_user_errors('Cannot convert {1}')
    def _iconvert(self, text):
        '''
        Convert text to a normalized value on input.
        '''
        return parse_value(text, self.ctx)

    def _oconvert(self, value):
        return format_value(value, self.ctx)

    def _name(self, value):
        if not isinstance(value, Var):
            raise WrongType('Invalid name {}'.format(self._oconvert(value)))
        return value.name

    def print(self, *args, **kwargs):
        '''
        Format args according to machine settings.
        '''
        kwargs.setdefault('file', self.out)
        return print(*[self._oconvert(arg)
                       for arg
                       in args],
                     **kwargs)

    def clrstack(self):
        '''
        Clear everything from the stack.
        '''
        self.stack.clear()

    @wrap_user_errors('Empty stack')
    def printtop(self):
        '''
        Print the element on the top of the stack.
        '''
        self.print(self.stack.top())

    def printstack(self):
        '''
        Print all elements on the stack, top of the stack first.
        '''
        self.print(*reversed(self.stack.values()), sep='\n')

    def dupstack(self, top):
        '''
        Duplicate element at top of stack.
        '''
        self.stack.push([top, top])

    def popstack(self, top):
        '''
        Pop and print element at top of stack.
        '''
        self.print(top)

    def revstack(self, below, top):
        '''
        Swap two elements at top of stack.
        '''
        self.stack.push([top, below])

    def rotstack(self, n):
        '''
        Rotate the entire stack by n.
        '''
        if not is_integer(n):
            raise WrongType('Rotation must be an integer', n)
        values = deque(self.stack.pop(self.stack.size()))
        values.rotate(n)
        self.stack.push(values)

    def printhelp(self):
        '''
        Print all possible commands.
        '''
        print('functions:', *sorted(op.value for op in NORMALIZER_BUILTINS),
              file=stderr)
        print('operators:', *sorted(type(self).OPERATORS), file=stderr)

    def load(self, name):
        '''
        Load variable value into stack.
        '''
        value = self.ctx.lookup(self._name(name))
        if value is None:
            raise UnboundVariable('No such register {}'.format(name.name))
        return value

    def store(self, value, name):
        '''
        Store value into variable.
        '''
        self.ctx.bind(self._name(name), value)

    def define(self, name, params, body):
        '''
        Define function name of a vector of parameter names.
        '''
        if not isinstance(params, Vec):
            raise WrongType('Parameters must be a vector', params)
        self.ctx.define(self._name(name), map(self._name, params), body)

    def storeprecision(self, precision):
        '''
        Set working precision.
        '''
        self.ctx.precision = precision

    def loadprecision(self):
        '''
        Push working precision to top of stack.
        '''
        return self.ctx.precision

    def undo(self):
        self.stack.undo()

    def redo(self):
        self.stack.redo()

    def printwhy(self):
        '''
        Explain what went wrong in the last command.
        '''
        for diagnostic in self.why:
            print(diagnostic, file=stderr)

    # Language mapping to stack operations/callables.
    FUNCTIONS = {
        'p': printtop,
        'P': popstack,
        'f': printstack,
        'd': dupstack,
        'r': revstack,
        'R': rotstack,
        'c': clrstack,
        'h': printhelp,
        's': store,
        'l': load,
        'F': define,
        'k': storeprecision,
        'K': loadprecision,
        'U': undo,
        'D': redo,
        'w': printwhy,
    }

    # Run outside of any command, so as not to be undone themselves, or to
    # leave the last command's diagnostics alone.
    DIRECT = {
        'p': printtop,
        'f': printstack,
        'h': printhelp,
        'U': undo,
        'D': redo,
        'w': printwhy,
    }

    # All operators, whether symbols, builtins, etc.
    OPERATORS = dict()
    for namespace in FUNCTIONS, BUILTINS, SHORTHAND:
        OPERATORS.update(namespace)
