'''
RPN machine tests
'''

from fractions import Fraction
from io import StringIO

from rpncalc.context import Context
from rpncalc.fmt import format_value
from rpncalc.lexer import Lexer
from rpncalc.machine import Machine
from rpncalc.util import CalcError, DivisionByZero
from rpncalc.values import Float, make_call, make_var

from pytest import fixture, raises


@fixture
def machine():
    return Machine(Context(), out=StringIO())


def run(machine, line):
    lexer = Lexer()
    for match in lexer.lex(line):
        if lexer.isimmediate(match) and lexer.isfeedable(match):
            machine.feed(lexer.matchedgroups(match))


def test_arithmetic(machine):
    run(machine, '2 3 + 4 *')
    assert machine.stack.values() == [20]


def test_operand_order(machine):
    run(machine, '9 2 ^ 7 2 -')
    assert machine.stack.values() == [81, 5]


def test_negation(machine):
    run(machine, '3_ 2 +')
    assert machine.stack.values() == [-1]


def test_fractions_and_floats(machine):
    run(machine, '1:3 1:6 +')
    assert machine.stack.values() == [Fraction(1, 2)]
    run(machine, 'c 1 3 /')
    assert machine.stack.values() == [Float(333333333333, -12)]


def test_quoted_values(machine):
    run(machine, "'(1, 2)' '(3, 4)' *")
    assert format_value(machine.stack.top(), machine.ctx) == '(-5, 10)'


def test_symbolic(machine):
    run(machine, "'x' 'x' +")
    assert machine.stack.top() == make_call('*', 2, make_var('x'))


def test_failed_command_leaves_stack(machine):
    run(machine, '1 0')
    with raises(DivisionByZero):
        run(machine, '/')
    assert machine.stack.values() == [1, 0]
    assert [d.kind for d in machine.why] == ['division-by-zero']


def test_undo_redo(machine):
    run(machine, '2 3 +')
    run(machine, 'U')
    assert machine.stack.values() == [2, 3]
    run(machine, 'D')
    assert machine.stack.values() == [5]


def test_stack_commands(machine):
    run(machine, '1 2 r')
    assert machine.stack.values() == [2, 1]
    run(machine, 'd')
    assert machine.stack.values() == [2, 1, 1]
    run(machine, '1 R')
    assert machine.stack.values() == [1, 2, 1]
    run(machine, 'c')
    assert machine.stack.values() == []
    with raises(CalcError):
        run(machine, 'd')


def test_printing(machine):
    run(machine, '1 2 p f')
    assert machine.out.getvalue() == '2\n2\n1\n'
    run(machine, 'P')
    assert machine.stack.values() == [1]


def test_registers(machine):
    run(machine, "5 'x' s 'x' l 'x' 1 +")
    assert machine.stack.values() == [5, 6]
    with raises(CalcError):
        run(machine, "'nothing' l")


def test_precision(machine):
    run(machine, '3 k K 2 3 /')
    assert machine.stack.values() == [3, Float(667, -3)]
    with raises(CalcError):
        run(machine, '0 k')
    assert machine.ctx.precision == 3


def test_functions(machine):
    run(machine, "'sq' '[y]' 'y * y' F 7 'sq' $")
    assert machine.stack.values() == [49]
    run(machine, "16 'sqrt' $ 2 v")
    assert machine.stack.values() == [49, 4, Float(141421356237, -11)]
    with raises(CalcError):
        run(machine, "'nope' $")
