'''
User evaluation rules.

A rule is the formula ``lhs := rhs``; every variable in lhs is a pattern
variable, except the named constants. The rule set lives in the variable
named by Context.RULES_VARIABLE, as a single rule or a vector of rules, and
is compiled once per binding of that variable.
'''

from collections import namedtuple
import logging

from .util import CalcError, UnboundVariable, WrongType
from .values import Call, Float, Op, Value, Var, Vec


logger = logging.getLogger(__name__)

# Variables that always stand for themselves in a pattern.
CONSTANTS = frozenset({'pi', 'e', 'i', 'inf', 'uinf', 'nan'})


class Rule(namedtuple('Rule', 'lhs rhs')):
    __slots__ = ()


class RuleCache(namedtuple('RuleCache', 'token rules')):
    '''
    Compiled rules, valid while the rule variable's generation is token.
    '''
    __slots__ = ()


def _is_pattern_var(x):
    return isinstance(x, Var) and x.slot not in CONSTANTS


def _parts(x):
    '''
    Sub-values of a composite, or None for atoms.
    '''
    if isinstance(x, Call):
        return x.args
    if isinstance(x, Value) and not isinstance(x, (Float, Var)):
        return tuple(x)
    return None


def match(pattern, node, bindings=None):
    '''
    Match node against pattern.

    Return the extended bindings (slot -> value), or None on failure. A
    pattern variable seen twice must match equal values.
    '''
    if bindings is None:
        bindings = {}
    if _is_pattern_var(pattern):
        bound = bindings.get(pattern.slot)
        if bound is None:
            bindings = dict(bindings)
            bindings[pattern.slot] = node
            return bindings
        return bindings if bound == node else None
    if isinstance(pattern, Call):
        if not isinstance(node, Call) or node.op != pattern.op or \
           len(node.args) != len(pattern.args):
            return None
    elif type(pattern) is not type(node):
        return None
    parts = _parts(pattern)
    if parts is None:
        return bindings if pattern == node else None
    node_parts = _parts(node)
    if len(parts) != len(node_parts):
        return None
    for sub_pattern, sub_node in zip(parts, node_parts):
        bindings = match(sub_pattern, sub_node, bindings)
        if bindings is None:
            return None
    return bindings


def substitute(template, bindings):
    '''
    Replace the variables of template bound in bindings.
    '''
    if isinstance(template, Var):
        return bindings.get(template.slot, template)
    if isinstance(template, Call):
        return Call(template.op,
                    tuple(substitute(arg, bindings) for arg in template.args))
    if isinstance(template, Vec):
        return Vec(substitute(item, bindings) for item in template)
    if _parts(template) is not None:
        return type(template)(*(substitute(part, bindings)
                                for part in template))
    return template


def compile_rules(value):
    '''
    Turn a rule, or a vector of rules, into a tuple of Rules.
    '''
    items = value if isinstance(value, Vec) else (value,)
    rules = []
    for item in items:
        if not (isinstance(item, Call) and item.op == Op.ASSIGN and
                len(item.args) == 2):
            raise WrongType('Not a rewrite rule', item)
        rules.append(Rule(*item.args))
    return tuple(rules)


def rules_for(ctx):
    '''
    The user's rules, recompiled whenever the rule variable was rebound.

    An invalid rule set is unbound, so that one bad rule cannot break every
    later computation; the failure is recorded in the why buffer.
    '''
    slot = ctx.RULES_VARIABLE
    cache = ctx.rule_cache
    if cache is not None and cache.token == ctx.generation(slot):
        return cache.rules
    value = ctx.lookup(slot)
    rules = ()
    if value is not None:
        try:
            rules = compile_rules(value)
        except CalcError as e:
            logger.debug('discarding invalid %s: %s', slot, e.message)
            ctx.unbind(slot)
            ctx.record(UnboundVariable('Invalid rules were cleared', slot))
    logger.debug('compiled %d rule(s) from %s', len(rules), slot)
    ctx.rule_cache = RuleCache(ctx.generation(slot), rules)
    return rules


def apply_rules(node, rules):
    '''
    Rewrite node with the first rule that changes it, or return None.
    '''
    for rule in rules:
        bindings = match(rule.lhs, node)
        if bindings is not None:
            result = substitute(rule.rhs, bindings)
            if result != node:
                return result
    return None
