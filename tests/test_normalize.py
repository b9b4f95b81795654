'''
Normalizer tests
'''

from fractions import Fraction

from rpncalc.context import Context
from rpncalc.normalize import last_diagnostic, normalize
from rpncalc.util import RecursionLimitExceeded, WrongArity
from rpncalc.values import (Call, Cplx, Float, HMS, Intv, Mod, Polar,
                            Sdev, Vec, make_call, make_var)

from pytest import raises


x = make_var('x')


def test_numbers(ctx):
    assert normalize(5, ctx) == 5
    assert normalize(Fraction(4, 2), ctx) == 2
    assert normalize(Float(100, 0), ctx) == Float(1, 2)


def test_composites(ctx):
    assert normalize(Cplx(1, 0), ctx) == 1
    assert normalize(Polar(2, 0), ctx) == 2
    assert normalize(HMS(0, 0, 3600), ctx) == HMS(1, 0, 0)
    assert normalize(Mod(9, 7), ctx) == Mod(2, 7)
    assert normalize(Sdev(3, 0), ctx) == 3
    assert normalize(Vec([make_call('+', 1, 1), Fraction(2, 4)]), ctx) == \
        Vec([2, Fraction(1, 2)])


def test_idempotent(ctx):
    for node in (make_call('+', x, x),
                 make_call('*', 2, make_call('-', x, 3)),
                 Cplx(1, 2), Polar(2, 1), Intv(2, 1, 2), HMS(1, 90, 0),
                 make_call('/', 1, 3), make_call('^', x, 3),
                 Vec([x, Float(120, 0)])):
        once = normalize(node, ctx)
        assert normalize(once, ctx) == once


def test_operators(ctx):
    assert normalize(make_call('+', 1, 2, 3), ctx) == 6
    assert normalize(make_call('*', 2, 3, 4), ctx) == 24
    assert normalize(make_call('neg', make_call('-', 1, 3)), ctx) == 2
    assert normalize(make_call('+', x, x), ctx) == make_call('*', 2, x)
    assert normalize(Call('+', (1, 2)), ctx) == 3


def test_unknown_function_stays_symbolic(ctx):
    assert normalize(make_call('f', make_call('+', 1, 1)), ctx) == \
        make_call('f', 2)


def test_hard_failure_returns_original(ctx):
    node = make_call('/', 1, 0)
    assert normalize(node, ctx) == node
    assert last_diagnostic(ctx).kind == 'division-by-zero'
    assert ctx.failure is not None


def test_hard_failure_aborts_whole_formula(ctx):
    node = make_call('+', make_call('*', 2, 3), make_call('/', 1, 0))
    assert normalize(node, ctx) == node


def test_wrong_arity(ctx):
    node = make_call('-', 1)
    assert normalize(node, ctx) == node
    assert isinstance(ctx.failure, WrongArity)


def test_soft_failure_keeps_normalized_arguments(ctx):
    result = normalize(make_call('+', Vec([make_call('+', 1, 1)]), 1), ctx)
    assert result == make_call('+', Vec([2]), 1)
    assert last_diagnostic(ctx).kind == 'wrong-type'
    assert ctx.failure is None


def test_wrong_type_recorded_once(ctx):
    normalize(Cplx(make_call('+', Vec([1]), 1), 1), ctx)
    assert [d.kind for d in ctx.why] == ['wrong-type']


def test_variables(ctx):
    assert normalize(make_call('+', x, 1), ctx) == make_call('+', x, 1)
    ctx.bind('x', 5)
    assert normalize(make_call('+', x, 1), ctx) == 6


def test_constants():
    assert normalize(make_var('pi'), Context()) == Float(314159265359, -11)
    assert normalize(make_var('pi'), Context(symbolic=True)) == \
        make_var('pi')
    assert normalize(make_var('inf'), Context()) == make_var('inf')


def test_user_functions(ctx):
    ctx.define('sq', ['x'], make_call('*', x, x))
    assert normalize(make_call('sq', 3), ctx) == 9
    node = make_call('sq', 3, 4)
    assert normalize(node, ctx) == node
    assert last_diagnostic(ctx).kind == 'wrong-arity'


def test_inert_forms(ctx):
    quoted = make_call('quote', make_call('+', 1, 2))
    assert normalize(quoted, ctx) == quoted
    rule = make_call(':=', x, make_call('+', 1, 2))
    assert normalize(rule, ctx) == rule


def test_rewrite_rules(ctx):
    rule = make_call(':=', make_call('f', x), make_call('*', x, x))
    ctx.bind(ctx.RULES_VARIABLE, Vec([rule]))
    assert normalize(make_call('f', 3), ctx) == 9
    assert normalize(make_call('g', 3), ctx) == make_call('g', 3)


def test_rewrite_rule_variables_match_consistently(ctx):
    rule = make_call(':=', make_call('-', make_call('f', x), make_call('f', x)),
                     0)
    ctx.bind(ctx.RULES_VARIABLE, rule)
    y = make_var('y')
    assert normalize(make_call('-', make_call('f', y), make_call('f', y)),
                     ctx) == 0
    assert normalize(make_call('-', make_call('f', 1), make_call('f', 2)),
                     ctx) == make_call('-', make_call('f', 1),
                                       make_call('f', 2))


def test_rule_cache_follows_rebinding(ctx):
    ctx.bind(ctx.RULES_VARIABLE,
             make_call(':=', make_call('f', x), make_call('+', x, 1)))
    assert normalize(make_call('f', 1), ctx) == 2
    ctx.bind(ctx.RULES_VARIABLE,
             make_call(':=', make_call('f', x), make_call('+', x, 2)))
    assert normalize(make_call('f', 1), ctx) == 3
    ctx.unbind(ctx.RULES_VARIABLE)
    assert normalize(make_call('f', 1), ctx) == make_call('f', 1)


def test_invalid_rules_are_cleared(ctx):
    ctx.bind(ctx.RULES_VARIABLE, 5)
    assert normalize(make_call('+', x, 1), ctx) == make_call('+', x, 1)
    assert ctx.lookup(ctx.RULES_VARIABLE) is None
    assert last_diagnostic(ctx).kind == 'unbound-variable'
    assert ctx.failure is None


def test_runaway_recursion():
    ctx = Context(max_depth=20)
    ctx.define('loop', ['x'], make_call('loop', make_call('+', x, 1)))
    with raises(RecursionLimitExceeded):
        normalize(make_call('loop', 1), ctx)
    assert ctx.depth == 0
    assert last_diagnostic(ctx).kind == 'too-deep'


def test_runaway_rewriting():
    ctx = Context(max_depth=20)
    ctx.bind(ctx.RULES_VARIABLE,
             make_call(':=', make_call('f', x),
                       make_call('f', make_call('g', x))))
    with raises(RecursionLimitExceeded):
        normalize(make_call('f', 1), ctx)
    assert ctx.depth == 0
