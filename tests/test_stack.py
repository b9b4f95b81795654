'''
Evaluation stack tests
'''

from rpncalc.arith import add
from rpncalc.context import Context
from rpncalc.stack import Stack
from rpncalc.util import ArgumentOutOfRange, CalcError, SelectionConflict
from rpncalc.values import Vec

from pytest import raises


def test_replace_top_two(ctx, stack):
    stack.push([2])
    stack.push([3])
    stack.replace(2, 1, [add(stack.top(2), stack.top(1), ctx)])
    assert stack.top() == 5
    assert stack.size() == 1


def test_size_excludes_marker(stack):
    assert stack.size() == 0
    stack.push([1, 2, 3])
    assert stack.size() == len(stack.entries) - stack.top_offset == 3


def test_push_order(stack):
    stack.push([1, 2, 3])
    assert stack.values() == [1, 2, 3]
    assert stack.top() == 3
    stack.push([9], position=3)
    assert stack.values() == [1, 9, 2, 3]


def test_pop(stack):
    stack.push([1, 2, 3, 4])
    assert stack.pop(2) == [3, 4]
    assert stack.pop(1, position=2) == [1]
    assert stack.values() == [2]
    with raises(CalcError, match='Less than 2'):
        stack.pop(2)


def test_undo_redo(stack):
    stack.push([1])
    before = stack.values()
    stack.push([7])
    stack.undo()
    assert stack.values() == before
    stack.redo()
    assert stack.values() == [1, 7]


def test_undo_replace(ctx, stack):
    stack.push([2, 3])
    stack.replace(2, 1, [5])
    stack.undo()
    assert stack.values() == [2, 3]
    stack.undo()
    assert stack.values() == []
    with raises(CalcError, match='No further undo information available'):
        stack.undo()


def test_new_command_clears_redo(stack):
    stack.push([1])
    stack.undo()
    stack.push([2])
    with raises(CalcError):
        stack.redo()


def test_undo_depth_cap():
    stack = Stack(Context(undo_depth=2))
    for n in 1, 2, 3:
        stack.push([n])
    stack.undo()
    stack.undo()
    with raises(CalcError):
        stack.undo()
    assert stack.values() == [1]


def test_undo_depth_must_be_natural():
    for depth in -1, True, 2.5:
        with raises(ArgumentOutOfRange):
            Context(undo_depth=depth)
    assert Context(undo_depth=0).undo_depth == 0


def test_nested_commands_coalesce(stack):
    with stack.command():
        stack.push([1])
        with stack.command():
            stack.push([2])
    assert len(stack.undo_log) == 1
    stack.undo()
    assert stack.values() == []


def test_failed_command_rolls_back(stack):
    stack.push([1, 2])
    with raises(CalcError):
        with stack.command():
            stack.pop(2)
            stack.push([3])
            raise CalcError('Boom')
    assert stack.values() == [1, 2]
    assert len(stack.undo_log) == 1


def test_conflicting_owners(stack):
    with stack.command(owner='a'):
        with raises(CalcError):
            with stack.command(owner='b'):
                pass


def test_selection(stack):
    stack.push([1, 2])
    stack.select(1, 'x')
    with raises(SelectionConflict):
        stack.pop()
    assert stack.values() == [1, 2]
    assert stack.pop(allow_selection=True) == [2]
    stack.undo()
    assert stack.entries[1].selection == 'x'
    stack.unselect(1)
    assert stack.pop() == [2]


def test_heights_follow_width(ctx):
    stack = Stack(ctx, width=5)
    stack.push([Vec([1, 2, 3, 4])])
    assert stack.entries[1].height == 3
    stack.set_width(80)
    assert stack.entries[1].height == 1
    stack.push([Vec([Vec([1, 2]), Vec([3, 4])])])
    assert stack.entries[1].height == 2
