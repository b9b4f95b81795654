from pytest import Item, fixture

from rpncalc.context import Context
from rpncalc.stack import Stack


@fixture
def ctx():
    return Context()


@fixture
def stack(ctx):
    return Stack(ctx)


def pytest_assertion_pass(item: Item,
                          lineno: int,
                          orig: str,
                          expl: str) -> None:
    '''
    Log every assertion, in case we later need to audit a run.

    Use with pytest -rP.
    '''
    print('given', item.name + ':' + str(lineno), str(orig))
    print('actual', item.name + ':' + str(lineno),
          '\n'.join(str(expl).splitlines()[:-2]))
