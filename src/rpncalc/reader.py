'''
Reader for the linear notation produced by rpncalc.fmt.

    expr    := form [':=' form]
    form    := sum ['+/-' sum | 'mod' sum]
    sum     := term {('+' | '-') term}
    term    := unary {('*' | '/' | '%') unary}
    unary   := '-' unary | power
    power   := primary ['^' unary]
    primary := number ['@' ...] | name ['(' args ')'] | '(' ... ')'
             | '[' ... ']' | '<' expr '>'
'''

from decimal import Decimal

import regex

from .normalize import normalize
from .util import CalcError
from .values import (Cplx, Date, Float, HMS, Intv, Mod, Op, Polar, Sdev, Vec,
                     make_call, make_frac, make_var)


NAME = regex.compile(r'[^\W\d]\w*')

TOKEN = regex.compile(r'''
    \s*
    (?:
        (?<number>
            \d+:\d+
            |
            (?:\d+(?:\.(?!\.)\d*)?|\.\d+)(?:e[-+]?\d+)?
        )
        |
        (?<name>[^\W\d]\w*)
        |
        (?<punct>\+/-|:=|\.\.|[-+*/%^()\[\],;<>@'"])
    )
''', flags=regex.VERBOSE | regex.VERSION1)


def tokenize(text):
    pos = 0
    text = text.rstrip()
    while pos < len(text):
        match = TOKEN.match(text, pos)
        if match is None:
            raise CalcError("Couldn't parse {}".format(text[pos:].strip()))
        pos = match.end()
        kind = match.lastgroup
        yield kind, match.group(kind)


class Reader:
    '''
    Recursive descent parser over the tokens of one value.
    '''

    def __init__(self, text):
        self.text = text
        self.tokens = list(tokenize(text))
        self.pos = 0

    def peek(self, offset=0):
        if self.pos + offset < len(self.tokens):
            return self.tokens[self.pos + offset]
        return (None, None)

    def accept(self, *values):
        kind, value = self.peek()
        if kind in ('punct', 'name') and value in values:
            self.pos += 1
            return value
        return None

    def expect(self, *values):
        value = self.accept(*values)
        if value is None:
            self.fail()
        return value

    def fail(self):
        raise CalcError("Couldn't parse {}".format(self.text.strip()))

    def read(self):
        node = self.expr()
        if self.pos != len(self.tokens):
            self.fail()
        return node

    def expr(self):
        node = self.form()
        if self.accept(':='):
            node = make_call(Op.ASSIGN, node, self.form())
        return node

    def form(self):
        node = self.sum()
        if self.accept('+/-'):
            return Sdev(node, self.sum())
        if self.accept('mod'):
            return Mod(node, self.sum())
        return node

    def sum(self):
        node = self.term()
        while True:
            op = self.accept('+', '-')
            if op is None:
                return node
            node = make_call(op, node, self.term())

    def term(self):
        node = self.unary()
        while True:
            op = self.accept('*', '/', '%')
            if op is None:
                return node
            node = make_call(op, node, self.unary())

    def unary(self):
        if self.accept('-'):
            if self.peek()[0] == 'number':
                return self.numeric(negate=True)
            return make_call(Op.NEG, self.unary())
        node = self.primary()
        if self.accept('^'):
            node = make_call(Op.POW, node, self.unary())
        return node

    def number(self, negate=False):
        kind, text = self.peek()
        if kind != 'number':
            self.fail()
        self.pos += 1
        if ':' in text:
            num, den = text.split(':')
            value = make_frac(int(num), int(den))
        elif '.' in text or 'e' in text:
            _, digits, exp = Decimal(text).as_tuple()
            mant = int(''.join(map(str, digits)))
            return Float(-mant if negate else mant, exp)
        else:
            value = int(text)
        return -value if negate else value

    def signed_number(self):
        return self.number(negate=bool(self.accept('-')))

    def numeric(self, negate=False):
        '''
        A number, or an HMS form h@ m' s" starting with one.
        '''
        value = self.number(negate)
        if not self.accept('@'):
            return value
        m = s = 0
        if self.peek()[0] == 'number' or self.peek()[1] == '-':
            if self.peek(1)[1] == "'" or self.peek(2)[1] == "'":
                m = self.signed_number()
                self.expect("'")
        if self.peek()[0] == 'number' or self.peek()[1] == '-':
            s = self.signed_number()
            self.expect('"')
        return HMS(value, m, s)

    def primary(self):
        kind, value = self.peek()
        if kind == 'number':
            return self.numeric()
        if kind == 'name':
            self.pos += 1
            if self.accept('('):
                return make_call(value, *self.items(')'))
            return make_var(value)
        if self.accept('<'):
            node = self.expr()
            self.expect('>')
            return Date(node)
        if self.accept('['):
            return self.bracket(2)
        if self.accept('('):
            return self.bracket(0)
        self.fail()

    def items(self, close):
        items = []
        if self.accept(close):
            return items
        items.append(self.expr())
        while self.accept(','):
            items.append(self.expr())
        self.expect(close)
        return items

    def interval(self, mask, lo):
        hi = self.expr()
        if self.expect(']', ')') == ']':
            mask |= 1
        return Intv(mask, lo, hi)

    def bracket(self, mask):
        '''
        What follows an opening '[' (mask 2) or '(' (mask 0).
        '''
        close = ']' if mask else ')'
        if mask and self.accept(']'):
            return Vec()
        first = self.expr()
        if self.accept('..'):
            return self.interval(mask, first)
        if not mask and self.accept(';'):
            theta = self.expr()
            self.expect(')')
            return Polar(first, theta)
        if not mask and self.accept(','):
            im = self.expr()
            self.expect(')')
            return Cplx(first, im)
        if mask:
            items = [first]
            while self.accept(','):
                items.append(self.expr())
            self.expect(close)
            return Vec(items)
        self.expect(close)
        return first


def read(text):
    '''
    Parse text into an unnormalized value.
    '''
    return Reader(text).read()


def parse_value(text, ctx):
    '''
    Parse and normalize a value written in linear notation.
    '''
    return normalize(read(text), ctx)


__all__ = 'NAME', 'read', 'parse_value'
