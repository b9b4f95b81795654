'''
RPN lexer tests
'''

import regex

from rpncalc.util import CalcError
from rpncalc.lexer import Lexer

from pytest import raises


def lexemes(line):
    l = Lexer()
    return [l.matchedgroups(m) for m in l.lex(line) if l.isfeedable(m)]


def test_even_backslashes():
    l = Lexer()
    matches = l.lex(r"'\\\\foo'")
    assert [m.group('__str__') for m in matches] == [r'\\\\foo']


def test_unknown_backslash():
    l = Lexer()
    with raises(CalcError, match=regex.escape(r"Couldn't lex '\f'")):
        list(l.lex(r"'\f'"))


def test_odd_backslashes():
    l = Lexer()
    matches = l.lex(r"'\''")
    # Backslashes are left for the machine to reduce.
    assert [m.group('__str__') for m in matches] == [r"\'"]


def test_numbers():
    assert [g['number'] for g in lexemes('1:3 1.5e-10 1_000 .5')] == \
        ['1:3', '1.5e-10', '1_000', '.5']


def test_operators_and_apply():
    groups = lexemes("2 3 + 'sqrt' $")
    assert groups[2] == {'operator': '+'}
    assert groups[3]['__str__'] == 'sqrt'
    assert groups[4] == {'apply': '$'}


def test_negation_is_not_a_number():
    groups = lexemes('3_')
    assert groups == [{'number': '3'}, {'operator': '_'}]
