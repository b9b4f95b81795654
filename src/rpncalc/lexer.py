from functools import reduce
import operator

import regex

from .util import CalcError
from .machine import Machine
from .reader import parse_value


class Lexer:
    '''
    Lexer for the RPN *regular* grammar.

    Values that need more than a number, such as fractions with variables,
    vectors or complex numbers, are quoted and read by rpncalc.reader.
    '''
    # Integral part of a number
    INTEGRAL = r'''
                # Repeats internally; use once.
                (?:
                    # 1, 12, or the 1 in 1_200.
                    \d{1,3}
                    (?:
                        \d
                        |
                        # Thousands separators
                        (?:
                            _\d{3}
                        )
                    )*
                )
                '''
    # Fractional part of a number
    FRACTIONAL = r'''
                  (?:
                      \d+
                      |
                      (?:
                          \d{3}
                          (?:
                              _\d{3}
                          )*
                          (?:
                              _\d{1,2}
                          )?
                      )*
                  )
                  '''
    # Decimal exponent, as in 1.5e-10
    EXPONENT = r'''
                (?:
                    e
                    [-+]?
                    \d+
                )
                '''
    # Number, of any kind supported by grammar.
    # String formatting and regex is a tricky business, because of the braces.
    NUMBER = r'''
              (?:
                  # 1:3, an exact fraction
                  {INTEGRAL}
                  :
                  {INTEGRAL}
              )|(?:
                  (?:
                      # 1, 12, 1_200, 1_200. (notice trailing dot), 1.3
                      {INTEGRAL}
                      (?:
                          \.
                          {FRACTIONAL}?
                      )?
                  )|(?:
                      # .2, 0.2, 0.200_200 but not 0.2_200
                      {INTEGRAL}?
                      \.
                      {FRACTIONAL}
                  )
              )
              {EXPONENT}?
              '''.format(INTEGRAL=INTEGRAL, FRACTIONAL=FRACTIONAL,
                         EXPONENT=EXPONENT)
    # Quoted value
    STR = r'''
           (?:
               '
               (?<__str__>
                   (?:
                       [^'\\]
                       |
                       \\'
                   )*
               )
               '
           )|(?:
               \\
               (?<__str__>
                   .
               )
           )
           '''

    assert not [operator
                for operator
                in Machine.OPERATORS
                if len(operator) != 1]
    OPERATOR = r'(?:' + r'|'.join(map(regex.escape, Machine.OPERATORS)) + r')'
    # $ like in Haskell apply, but of course, eagerly evaluated.
    APPLY = r'\$'
    SPACE = r'\s+'

    # Immediate, as in immediately complete lexeme
    IMMEDIATE = r'(?<operator>' + OPERATOR + r')|' \
                r'(?<apply>' + APPLY + r')|' \
                r'(?<space>' + SPACE + r')'
    # All possible lexemes.
    LEXEME = r'(?<number>' + NUMBER + r')|' \
             r'(?<str>' + STR + r')|' \
             r'(?<immediate>' + IMMEDIATE + r')'
    # Default regex flags for matching lexemes
    FLAGS = reduce(operator.__or__,
                   {regex.POSIX,
                    regex.DOTALL,
                    regex.VERSION1,
                    regex.VERBOSE},
                   0)

    def lex(self, line):
        '''
        Take a line and return all lexemes.

        Doesn't yield incomplete or incorrect lexemes, stopping on first bad.
        '''
        while line:
            match = regex.match(type(self).LEXEME, line,
                                flags=type(self).FLAGS)
            if match is None:
                break
            yield match
            line = line[len(match.group(0)):]
        if line:
            raise CalcError("Couldn't lex {0}".format(line.strip()))

    def isfeedable(self, match):
        '''
        Return True if lexeme can be fed to machine.
        '''
        return 'space' not in self.matchedgroups(match).keys()

    def isimmediate(self, match):
        '''
        Return true if lexeme is unambiguously complete.
        '''
        return 'immediate' in match.groupdict()

    def matchedgroups(self, match):
        '''
        Lexeme groups that matched.
        '''
        return {key: value
                for key, value
                in match.groupdict().items()
                if value and key != 'immediate'}


__all__ = 'Lexer', 'parse_value'
