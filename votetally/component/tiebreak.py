'''Deterministic tie-breaking policies for sequential counts.

When an STV round must elect or eliminate one of several candidates with
equal totals, a tie-breaker orders the tied candidates from the most favoured
to the least favoured. The election takes the first candidate of the
ordering; the elimination takes the last.

A tie-breaker is prepared once per tally with :meth:`TieBreaker.prepare`,
which gives it the declared candidates and the votes, and then asked to
:meth:`TieBreaker.rank` tied candidates given the history of the count, a
list of the per-round totals of the rounds counted so far.

All tie-breakers are deterministic. Tie-breaking by lot is left to the
caller, who may draw a priority list and supply it as :class:`ExplicitOrder`.
'''

import abc
import logging
from typing import Any, Collection, Dict, List, Mapping, Optional, Sequence
from typing import Union

import votetally.util
from votetally.candidate import Candidate, positions
from votetally.errors import InvalidConfiguration, TieUnresolved
from votetally.persist import simple_serialization
from votetally.weight import Weight, WeightBackend


logger = logging.getLogger(__name__)

History = Sequence[Mapping[Candidate, Weight]]


class TieBreaker(metaclass=abc.ABCMeta):
    '''An abstract base class for tie-breakers.'''
    def prepare(self,
                candidates: Sequence[Candidate],
                votes: Mapping[Any, Weight],
                backend: Optional[WeightBackend] = None,
                ) -> None:
        '''Prepare the tie-breaker for a tally.

        :param candidates: The declared candidates.
        :param votes: The votes of the tally.
        :param backend: Weight backend of the count.
        '''
        pass

    @abc.abstractmethod
    def rank(self,
             tied: Collection[Candidate],
             history: History = (),
             ) -> List[Candidate]:
        '''Order the tied candidates, most favoured first.

        :param tied: The tied candidates.
        :param history: Totals of the rounds counted so far, oldest first.
        :raises TieUnresolved: If the policy cannot tell some candidates
            apart.
        '''
        raise NotImplementedError


@simple_serialization
class ExplicitOrder(TieBreaker):
    '''Break ties by a fixed priority list.

    :param priority: All declared candidates, most favoured first.
    '''
    def __init__(self, priority: Sequence[Candidate]):
        self.priority = list(priority)
        self._positions = {cand: i for i, cand in enumerate(self.priority)}

    def prepare(self,
                candidates: Sequence[Candidate],
                votes: Mapping[Any, Weight],
                backend: Optional[WeightBackend] = None,
                ) -> None:
        missing = [cand for cand in candidates if cand not in self._positions]
        if missing:
            raise InvalidConfiguration(
                f'tie-break priority does not cover candidates {missing}'
            )

    def rank(self,
             tied: Collection[Candidate],
             history: History = (),
             ) -> List[Candidate]:
        return sorted(tied, key=self._positions.__getitem__)


@simple_serialization
class FirstAppearance(TieBreaker):
    '''Favour candidates appearing earlier on the ballots.

    Candidates are ordered as they first appear when the ballots are scanned
    rank by rank: first the first preferences of all ballots in the order
    the ballots were given, then the second preferences, etc. Candidates
    that appear on no ballot come last, in declared order.
    '''
    def __init__(self):
        self._positions = None

    def prepare(self,
                candidates: Sequence[Candidate],
                votes: Mapping[Any, Weight],
                backend: Optional[WeightBackend] = None,
                ) -> None:
        order = votetally.util.all_ranked_candidates(votes)
        seen = set(order)
        order.extend(cand for cand in candidates if cand not in seen)
        self._positions = positions(order)

    def rank(self,
             tied: Collection[Candidate],
             history: History = (),
             ) -> List[Candidate]:
        if self._positions is None:
            raise RuntimeError('tie-breaker not prepared, call prepare()')
        return sorted(tied, key=self._positions.__getitem__)


@simple_serialization
class PreviousRounds(TieBreaker):
    '''Favour candidates with higher totals in the previous rounds.

    The totals of the tied candidates are compared in the most recent round
    first; candidates still tied are compared in the round before, etc.
    This is sometimes called backwards tie-breaking.

    :param fallback: A tie-breaker for candidates that were tied in all
        previous rounds. If None, such ties stay unresolved.
    '''
    def __init__(self, fallback: Optional[TieBreaker] = None):
        self.fallback = fallback
        self._backend = None
        self._positions = {}

    def prepare(self,
                candidates: Sequence[Candidate],
                votes: Mapping[Any, Weight],
                backend: Optional[WeightBackend] = None,
                ) -> None:
        if backend is None:
            raise InvalidConfiguration(
                'previous rounds tie-break needs the weight backend'
            )
        self._backend = backend
        self._positions = positions(candidates)
        if self.fallback is not None:
            self.fallback.prepare(candidates, votes, backend)

    def rank(self,
             tied: Collection[Candidate],
             history: History = (),
             ) -> List[Candidate]:
        if self._backend is None:
            raise RuntimeError('tie-breaker not prepared, call prepare()')
        groups = [sorted(tied, key=self._positions.__getitem__)]
        for totals in reversed(history):
            groups = [
                part
                for group in groups
                for part in self._split(group, totals)
            ]
        ranked = []
        for group in groups:
            if len(group) == 1:
                ranked.extend(group)
            elif self.fallback is None:
                raise TieUnresolved(group, 'tie-break by previous rounds')
            else:
                logger.debug('tie between %s passed to fallback', group)
                ranked.extend(self.fallback.rank(group, history))
        return ranked

    def _split(self,
               group: List[Candidate],
               totals: Mapping[Candidate, Weight],
               ) -> List[List[Candidate]]:
        if len(group) < 2:
            return [group]
        backend = self._backend
        zero = backend.zero()
        ordered = sorted(
            group,
            key=lambda cand: backend.sort_key(totals.get(cand, zero)),
            reverse=True,
        )
        parts = [[ordered[0]]]
        for cand in ordered[1:]:
            last = parts[-1][0]
            if backend.compare(totals.get(last, zero),
                               totals.get(cand, zero)) == 0:
                parts[-1].append(cand)
            else:
                parts.append([cand])
        return parts


TIE_BREAKERS: Dict[str, type] = {
    'first_appearance': FirstAppearance,
    'previous_rounds': PreviousRounds,
}


def construct(tie_break: Union[None, str, TieBreaker, Sequence[Candidate]]
              ) -> Optional[TieBreaker]:
    '''Construct a tie-breaker.

    :param tie_break: A tie-breaker object (passed through), a name from
        `TIE_BREAKERS`, a sequence of candidates (an explicit priority list)
        or None (no tie-breaking).
    :raises InvalidConfiguration: If the tie-breaker name is unknown.
    '''
    if tie_break is None or isinstance(tie_break, TieBreaker):
        return tie_break
    elif isinstance(tie_break, str):
        try:
            return TIE_BREAKERS[tie_break]()
        except KeyError:
            raise InvalidConfiguration(
                f'unknown tie-break: {tie_break!r}, expected one of'
                f' {", ".join(TIE_BREAKERS)} or a priority list'
            )
    elif isinstance(tie_break, (list, tuple)):
        return ExplicitOrder(tie_break)
    else:
        raise InvalidConfiguration(f'invalid tie-break: {tie_break!r}')
