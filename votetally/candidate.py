'''Candidate identifiers and the declared candidate set.

Any hashable object that is not a set or a tuple can be used as a candidate;
strings are the most usual choice. Candidates of one election should be
mutually comparable, since a candidate set declared as a set is sorted to
obtain a deterministic order.

The declared candidate order is the iteration order used throughout the
tally, so results never depend on hash order.
'''

import abc
import collections.abc
from typing import Any, Collection, Dict, Tuple

from votetally.errors import InvalidConfiguration


class Candidate(metaclass=abc.ABCMeta):
    '''An abstract class for election candidates.

    The subclass check is overridden so that any hashable object that is not
    a set or tuple is accepted. This is essentially just a type marker that
    tells candidates apart from the composite vote types.
    '''
    @classmethod
    def __subclasshook__(cls, subcl):
        if cls is Candidate:
            return (
                hasattr(subcl, '__hash__')
                and subcl.__hash__ is not None
                and not issubclass(subcl, collections.abc.Set)
                and not issubclass(subcl, tuple)
            )
        else:
            return super().__subclasshook__(subcl)


def declare(candidates: Collection[Candidate]) -> Tuple[Candidate, ...]:
    '''Produce the declared candidate tuple for a tally.

    :param candidates: The candidates standing in the election. A sequence
        keeps its order; a set is sorted.
    :raises InvalidConfiguration: If no candidates are given, a candidate is
        not hashable, is a set or tuple, or is declared twice.
    '''
    if isinstance(candidates, (str, bytes)) or candidates is None:
        raise InvalidConfiguration(
            f'candidates must be a collection, got {candidates!r}'
        )
    if isinstance(candidates, collections.abc.Set):
        try:
            declared = tuple(sorted(candidates))
        except TypeError:
            raise InvalidConfiguration(
                'candidates given as a set must be mutually comparable'
            )
    else:
        declared = tuple(candidates)
    if not declared:
        raise InvalidConfiguration('no candidates declared')
    seen = set()
    for cand in declared:
        if not isinstance(cand, Candidate):
            raise InvalidConfiguration(f'invalid candidate: {cand!r}')
        if cand in seen:
            raise InvalidConfiguration(f'candidate declared twice: {cand!r}')
        seen.add(cand)
    return declared


def positions(candidates: Tuple[Candidate, ...]) -> Dict[Candidate, int]:
    '''Map each declared candidate to its position in the declaration.'''
    return {cand: i for i, cand in enumerate(candidates)}

