'''
The evaluation stack.

Depth 1 is the top of the stack. Every change goes through a command frame
(Stack.command), which collects the inverse of each primitive change so the
whole command can be undone, redone, or rolled back when it fails.
'''

from collections import namedtuple
from contextlib import contextmanager
import logging

from .fmt import height
from .util import CalcError, SelectionConflict


logger = logging.getLogger(__name__)


class Entry(namedtuple('Entry', 'value height selection')):
    '''
    A stack row: the value, its display height in lines, and its selection.
    '''
    __slots__ = ()


# Hidden row standing for the top-of-stack marker line.
TOP_MARKER = Entry(None, 1, None)


class Stack:
    '''
    Stack of normalized values with undo/redo.
    '''

    top_offset = 1

    def __init__(self, ctx, width=None):
        self.ctx = ctx
        self.width = width
        self.entries = [TOP_MARKER]
        self.undo_log = []
        self.redo_log = []
        self._frame = None
        self._owner = None

    def size(self):
        return len(self.entries) - self.top_offset

    __len__ = size

    def _entry(self, value, selection=None):
        return Entry(value, height(value, self.width, self.ctx), selection)

    def _check_depth(self, depth):
        if depth < 1:
            raise CalcError('Bad stack position {}'.format(depth))
        if depth > self.size():
            raise CalcError('Less than {} element(s) on stack'.format(depth))

    def top(self, depth=1):
        '''
        Value at depth, 1 being the top of the stack.
        '''
        self._check_depth(depth)
        return self.entries[depth].value

    def values(self):
        '''
        All values, deepest first.
        '''
        return [entry.value for entry in reversed(self.entries[1:])]

    # Primitive changes. Each applies an action and returns its inverse.

    def _insert(self, entries, position):
        self.entries[position:position] = entries
        return ('remove', len(entries), position)

    def _remove(self, count, position):
        removed = self.entries[position:position + count]
        del self.entries[position:position + count]
        return ('insert', removed, position)

    def _mark(self, depth, selection):
        old = self.entries[depth]
        self.entries[depth] = old._replace(selection=selection)
        return ('mark', depth, old.selection)

    def _perform(self, action):
        kind, *args = action
        if kind == 'insert':
            entries, position = args
            # Widths may have changed since the entries were saved.
            entries = [self._entry(e.value, e.selection) for e in entries]
            return self._insert(entries, position)
        if kind == 'remove':
            return self._remove(*args)
        return self._mark(*args)

    def _do(self, action):
        inverse = self._perform(action)
        self._frame.append(inverse)

    def _replay(self, frame):
        '''
        Apply the inverses in frame, newest first, returning their inverses.
        '''
        return [self._perform(action) for action in reversed(frame)]

    # Commands

    @contextmanager
    def command(self, owner=None):
        '''
        Run the enclosed changes as one undoable command.

        Nested commands of the same owner join the enclosing one. If the
        body raises, every change made so far is rolled back.
        '''
        if self._frame is not None:
            if owner is not None and self._owner is not None and \
               owner is not self._owner:
                raise CalcError('Another command is in progress')
            yield self
            return
        self._frame = []
        self._owner = owner
        try:
            yield self
        except BaseException:
            frame, self._frame, self._owner = self._frame, None, None
            self._replay(frame)
            logger.debug('rolled back %d change(s)', len(frame))
            raise
        frame, self._frame, self._owner = self._frame, None, None
        if frame:
            self.redo_log.clear()
            self._log(frame)

    def _log(self, frame):
        self.undo_log.append(frame)
        excess = len(self.undo_log) - self.ctx.undo_depth
        if excess > 0:
            logger.debug('discarding %d oldest undo frame(s)', excess)
            del self.undo_log[:excess]

    def push(self, values, position=1):
        '''
        Insert values, deepest first, so the last one ends up at position.
        '''
        values = list(values)
        if position < 1 or position > self.size() + 1:
            raise CalcError('Bad stack position {}'.format(position))
        with self.command():
            if values:
                self._do(('insert',
                          [self._entry(value) for value in reversed(values)],
                          position))

    def pop(self, count=1, position=1, allow_selection=False):
        '''
        Remove count values starting at position and return them, deepest
        first.
        '''
        if count < 0:
            raise CalcError('Bad count {}'.format(count))
        if count == 0:
            return []
        self._check_depth(position + count - 1)
        self._check_depth(position)
        removed = self.entries[position:position + count]
        if not allow_selection and \
           any(entry.selection is not None for entry in removed):
            raise SelectionConflict()
        with self.command():
            self._do(('remove', count, position))
        return [entry.value for entry in reversed(removed)]

    def replace(self, count, position, values):
        '''
        Pop count values at position and push values in their place.
        '''
        with self.command():
            self.pop(count, position)
            self.push(values, position)

    def clear(self):
        with self.command():
            self.pop(self.size(), allow_selection=True)

    def select(self, depth, selection):
        self._check_depth(depth)
        with self.command():
            self._do(('mark', depth, selection))

    def unselect(self, depth):
        self.select(depth, None)

    def set_width(self, width):
        '''
        Change the display width, recomputing every entry's height.
        '''
        self.width = width
        self.entries[1:] = [self._entry(entry.value, entry.selection)
                            for entry in self.entries[1:]]

    # Undo

    def undo(self):
        if self._frame is not None:
            raise CalcError('Cannot undo inside a command')
        if not self.undo_log:
            raise CalcError('No further undo information available')
        frame = self.undo_log.pop()
        self.redo_log.append(self._replay(frame))
        logger.debug('undid %d change(s)', len(frame))

    def redo(self):
        if self._frame is not None:
            raise CalcError('Cannot redo inside a command')
        if not self.redo_log:
            raise CalcError('No further redo information available')
        frame = self.redo_log.pop()
        self._log(self._replay(frame))
        logger.debug('redid %d change(s)', len(frame))
