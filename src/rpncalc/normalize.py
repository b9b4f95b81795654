'''
Reduction of values and formulas to canonical form.

normalize() is the single entry point. Operators raise CalcErrors; this
module turns them into diagnostics in the context's why buffer. Hard errors
abort the whole normalization and hand back the original node, soft ones
leave the offending call symbolic.
'''

from fractions import Fraction
from functools import reduce
import logging

from . import arith, rewrite, transcend
from .util import CalcError, RecursionLimitExceeded, WrongArity, WrongType
from .values import (Call, Cplx, Date, Float, HMS, Intv, Mod, Op, Polar,
                     Sdev, Var, Vec, exact, is_integer, make_float)


logger = logging.getLogger(__name__)

# Op -> (function, arity); an arity of None folds over any positive count.
BUILTINS = {
    Op.ADD: (arith.add, None),
    Op.SUB: (arith.sub, 2),
    Op.MUL: (arith.mul, None),
    Op.DIV: (arith.div, 2),
    Op.MOD: (arith.mod, 2),
    Op.POW: (arith.pow_, 2),
    Op.NEG: (arith.neg, 1),
    Op.ABS: (arith.abs_, 1),
    Op.SQRT: (arith.sqrt, 1),
    Op.FLOAT: (arith.to_float, 1),
    Op.POLAR: (arith.to_polar, 1),
    Op.RECT: (arith.to_rect, 1),
}

INERT = frozenset({Op.QUOTE, Op.LAMBDA, Op.ASSIGN})

CONSTRUCTORS = {
    Cplx: arith.make_complex,
    Polar: arith.make_polar,
    HMS: arith.make_hms,
    Date: arith.make_date,
    Sdev: arith.make_sdev,
    Intv: arith.make_intv,
    Mod: arith.make_mod,
}


def normalize(node, ctx):
    '''
    Reduce node to canonical form.

    Never raises, except RecursionLimitExceeded when the nesting gets too
    deep. Whatever went wrong is explained by ctx.why.
    '''
    if ctx.depth:
        return _normalize(node, ctx)
    try:
        return _normalize(node, ctx)
    except RecursionLimitExceeded as e:
        ctx.record(e)
        raise
    except RecursionError:
        e = RecursionLimitExceeded()
        ctx.record(e)
        raise e from None
    except CalcError as e:
        logger.debug('normalization of %r aborted: %s', node, e.message)
        ctx.record(e)
        return node


def last_diagnostic(ctx):
    return ctx.last_diagnostic()


def _normalize(node, ctx):
    if is_integer(node):
        return node
    if isinstance(node, Fraction):
        return exact(node)
    if isinstance(node, Call) and _head(node.op) in INERT:
        return node
    with ctx.descend():
        if isinstance(node, Var):
            return _normalize_var(node, ctx)
        mark = len(ctx.why)
        node = _normalize_parts(node, ctx)
        rules = rewrite.rules_for(ctx)
        if rules:
            rewritten = rewrite.apply_rules(node, rules)
            if rewritten is not None:
                logger.debug('rewrote %r to %r', node, rewritten)
                return _normalize(rewritten, ctx)
        try:
            return _reduce(node, ctx)
        except CalcError as e:
            if e.hard:
                raise
            # Leave the explanation of a nested failure in place.
            if not (isinstance(e, WrongType) and len(ctx.why) > mark):
                ctx.record(e)
            return node


def _head(op):
    if isinstance(op, Op):
        return op
    return Op.lookup(op) or op


def _normalize_parts(node, ctx):
    if isinstance(node, Float):
        return Float(_normalize(node.mant, ctx), node.exp)
    if isinstance(node, Call):
        return Call(_head(node.op),
                    tuple(_normalize(arg, ctx) for arg in node.args))
    if isinstance(node, Vec):
        return Vec(_normalize(item, ctx) for item in node)
    if isinstance(node, Intv):
        return Intv(node.mask, _normalize(node.lo, ctx),
                    _normalize(node.hi, ctx))
    if type(node) in CONSTRUCTORS:
        return type(node)(*(_normalize(part, ctx) for part in node))
    raise WrongType('Unknown object', node)


def _normalize_var(var, ctx):
    value = ctx.lookup(var.slot)
    if value is not None:
        return _normalize(value, ctx)
    if not ctx.symbolic:
        if var.slot == 'pi':
            return transcend.pi(ctx)
        if var.slot == 'e':
            return transcend.e(ctx)
    return var


def _reduce(node, ctx):
    if isinstance(node, Float):
        return make_float(node.mant, node.exp, ctx)
    if isinstance(node, Vec):
        return node
    if isinstance(node, Call):
        return _apply(node, ctx)
    return CONSTRUCTORS[type(node)](*node, ctx)


def _apply(call, ctx):
    op, args = call
    if isinstance(op, Op):
        f, arity = BUILTINS[op]
        if arity is None:
            if not args:
                raise WrongArity('Wrong number of arguments', op.value, 0)
            return reduce(lambda a, b: f(a, b, ctx), args)
        if len(args) != arity:
            raise WrongArity('Wrong number of arguments', op.value, len(args))
        return f(*args, ctx)
    definition = ctx.functions.get(op)
    if definition is None:
        return call
    params, body = definition
    if len(params) != len(args):
        raise WrongArity('Wrong number of arguments', op, len(args))
    return _normalize(rewrite.substitute(body, dict(zip(params, args))), ctx)
