'''Pairwise preference matrix for Condorcet methods.

For every ordered pair of declared candidates, the matrix holds the total
weight of ballots ranking the first above the second (:meth:`wins`), and for
every unordered pair the weight of ballots ranking them equally
(:meth:`ties`). It is built by
:class:`votetally.convert.RankedToPairwiseMatrix` and read-only afterwards.
'''

import itertools
from typing import Any, Dict, Iterable, Mapping, Tuple

from votetally.candidate import Candidate
from votetally.errors import InvalidConfiguration
from votetally.persist import serialize_value
from votetally.weight import Weight, WeightBackend


class PairwiseMatrix:
    '''Counts of pairwise preferences between declared candidates.

    :param candidates: The declared candidates.
    :param backend: Weight backend of the counts.
    :param wins: Weights of ballots preferring the first candidate of each
        ordered pair to the second. Missing pairs count zero.
    :param ties: Weights of ballots ranking the pair equally, keyed by
        ordered pairs in declared order. Missing pairs count zero.
    '''
    def __init__(self,
                 candidates: Tuple[Candidate, ...],
                 backend: WeightBackend,
                 wins: Mapping[Tuple[Candidate, Candidate], Weight] = {},
                 ties: Mapping[Tuple[Candidate, Candidate], Weight] = {},
                 ):
        self.candidates = tuple(candidates)
        self.backend = backend
        self._index = {cand: i for i, cand in enumerate(self.candidates)}
        self._wins = dict(wins)
        self._ties = dict(ties)

    def _tie_key(self, a: Candidate, b: Candidate
                 ) -> Tuple[Candidate, Candidate]:
        return (a, b) if self._index[a] <= self._index[b] else (b, a)

    def wins(self, a: Candidate, b: Candidate) -> Weight:
        '''Weight of ballots ranking a above b.'''
        return self._wins.get((a, b), self.backend.zero())

    def ties(self, a: Candidate, b: Candidate) -> Weight:
        '''Weight of ballots ranking a and b equally.'''
        return self._ties.get(self._tie_key(a, b), self.backend.zero())

    def margin(self, a: Candidate, b: Candidate) -> Weight:
        '''Weight of ballots preferring a to b minus those preferring b.'''
        return self.backend.subtract(self.wins(a, b), self.wins(b, a))

    def beats(self, a: Candidate, b: Candidate) -> bool:
        '''Whether more weight prefers a to b than b to a.'''
        return self.backend.compare(self.wins(a, b), self.wins(b, a)) > 0

    def pairs(self) -> Iterable[Tuple[Candidate, Candidate]]:
        '''All ordered pairs of distinct candidates, in declared order.'''
        return itertools.permutations(self.candidates, 2)

    def win_counts(self) -> Dict[Tuple[Candidate, Candidate], Weight]:
        '''Return the wins for all ordered pairs as a dictionary.'''
        return {pair: self.wins(*pair) for pair in self.pairs()}

    def merge(self, other: 'PairwiseMatrix') -> 'PairwiseMatrix':
        '''Return a matrix adding up the counts of two matrices.

        :raises InvalidConfiguration: If the matrices do not have the same
            candidates.
        '''
        if other.candidates != self.candidates:
            raise InvalidConfiguration(
                'cannot merge pairwise matrices over different candidates'
            )
        add = self.backend.add
        wins = dict(self._wins)
        for pair, count in other._wins.items():
            wins[pair] = add(wins[pair], count) if pair in wins else count
        ties = dict(self._ties)
        for pair, count in other._ties.items():
            ties[pair] = add(ties[pair], count) if pair in ties else count
        return PairwiseMatrix(self.candidates, self.backend, wins, ties)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, PairwiseMatrix):
            return NotImplemented
        return (
            self.candidates == other.candidates
            and all(
                self.backend.compare(self.wins(*pair), other.wins(*pair)) == 0
                for pair in self.pairs()
            )
            and all(
                self.backend.compare(self.ties(a, b), other.ties(a, b)) == 0
                for a, b in itertools.combinations(self.candidates, 2)
            )
        )

    def __repr__(self) -> str:
        return f'<PairwiseMatrix({list(self.candidates)})>'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'candidates': [serialize_value(c) for c in self.candidates],
            'wins': [
                [serialize_value(a), serialize_value(b),
                 serialize_value(self.wins(a, b))]
                for a, b in self.pairs()
            ],
        }
