from os import isatty
from sys import stdin, stdout, stderr, exit
from argparse import ArgumentParser, REMAINDER, OPTIONAL
import logging

from prompt_toolkit import PromptSession

from .context import Context
from .util import CalcError
from .machine import Machine
from .lexer import Lexer


logger = logging.getLogger(__name__)


class InteractiveInput:
    def __init__(self, prompt):
        self.prompt = prompt

    def __iter__(self):
        try:
            session = PromptSession(message=self.prompt,
                                    vi_mode=True,
                                    enable_suspend=True,
                                    enable_open_in_editor=True,
                                    history=None,
                                    prompt_continuation=' ' * len(self.prompt),
                                    mouse_support=True,
                                    erase_when_done=False)
            while True:
                yield session.prompt()
        except EOFError:
            return


class CLI:
    '''
    Command line interface to the calculator.
    '''

    DEFAULT_PROMPT = '> '
    LOG_FORMAT = '%(levelname)s %(name)s: %(message)s'

    def dumper(self):
        '''
        Dump all lexeme matches and arity.
        '''
        machine = self._machine()
        lexer = Lexer()
        print('[groups]\t<repr(lexeme)>\t<arity>')
        for line in self.args.expressions:
            for match in lexer.lex(line):
                groups = lexer.matchedgroups(match)
                arity = None
                if 'operator' in groups or 'apply' in groups:
                    arity = machine._arity(machine.parse(groups))
                print(*groups.keys(),
                      repr(match.group(0)),
                      arity,
                      sep='\t')

    def executor(self):
        '''
        Run machine (RPN calculator).
        '''
        machine = self._machine()
        lexer = Lexer()
        for line in self.args.expressions:
            try:
                for match in lexer.lex(line):
                    if lexer.isimmediate(match) and lexer.isfeedable(match):
                        machine.feed(lexer.matchedgroups(match))
            # Abort entire rest of line
            except CalcError as e:
                logger.debug('command failed', exc_info=self.args.verbose)
                print(e.message, file=stderr)

    def raw_grammar(self):
        '''
        Print current internally defined grammar.
        '''
        lexer = Lexer()
        print(lexer.LEXEME)

    def _machine(self):
        ctx = Context(precision=self.args.precision,
                      prefer_fractions=self.args.prefer_fractions,
                      infinite_mode=self.args.infinite_mode,
                      angle_mode=self.args.angle_mode,
                      symbolic=self.args.symbolic,
                      undo_depth=self.args.undo_depth)
        return Machine(ctx, verbose=self.args.verbose)

    def _prompting_input(self):
        '''
        Return prompting stdin.__iter__ decorator...

        If either:
        - prompt explicitly specified.
        - both stdin/out are a tty
        '''
        if self.args.prompt or \
           isatty(stdin.fileno()) and isatty(stdout.fileno()):
            return InteractiveInput(prompt=self.args.prompt or
                                    self.DEFAULT_PROMPT)
        else:
            return stdin

    def __init__(self):
        '''
        Create ready to run CLI.

        Does not run or parse command line arguments.
        '''
        self.argument_parser = ArgumentParser(description='RPN calculator')
        self.argument_parser.add_argument('-v', '--verbose',
                                          action='store_true')
        self.argument_parser.add_argument('--precision', type=int,
                                          default=Context.DEFAULT_PRECISION)
        self.argument_parser.add_argument('--prefer-fractions',
                                          action='store_true')
        self.argument_parser.add_argument('--infinite-mode',
                                          choices=[mode
                                                   for mode
                                                   in Context.INFINITE_MODES
                                                   if mode])
        self.argument_parser.add_argument('--angle-mode',
                                          choices=Context.ANGLE_MODES,
                                          default=Context.DEFAULT_ANGLE_MODE)
        self.argument_parser.add_argument('--symbolic', action='store_true')
        self.argument_parser.add_argument('--undo-depth', type=int,
                                          default=Context.DEFAULT_UNDO_DEPTH)
        int_nonint_groups = self.argument_parser.add_mutually_exclusive_group()
        int_nonint_groups.add_argument('-e', '--expression',
                                       nargs=REMAINDER,
                                       dest='expressions')
        int_nonint_groups.add_argument('-p', '--prompt',
                                       nargs=OPTIONAL,
                                       const=self.DEFAULT_PROMPT)
        main_groups = self.argument_parser.add_mutually_exclusive_group()
        for short_, long_, action in [('-G', '--raw-grammar',
                                       self.raw_grammar),
                                      ('-D', '--dump', self.dumper)]:
            main_groups.add_argument(short_, long_,
                                     action='store_const',
                                     const=action,
                                     dest='action')
        self.argument_parser.set_defaults(action=self.executor,
                                          expressions=stdin)

    def run(self, *, args=None):
        '''
        Run CLI, given these args, or previously passed CLI args.
        '''
        self.args = self.argument_parser.parse_args(args)
        logging.basicConfig(level=logging.DEBUG if self.args.verbose
                            else logging.WARNING,
                            format=self.LOG_FORMAT)
        if self.args.expressions is stdin:
            self.args.expressions = self._prompting_input()
        try:
            self.args.action()
        except CalcError as e:
            print(e.message, file=stderr)
            exit(1)
        except KeyboardInterrupt:
            exit(1)


def main():
    CLI().run()
