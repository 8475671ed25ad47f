'''Objects to assign scores to ranks in positional (Borda) systems.

A rank scorer returns a list of points to be assigned to the ranks of a
ballot, in the weight domain of the count. Rank scorers capture the
variations of the Borda count:

-   classic Borda (:class:`Borda`) gives points by position among all
    declared candidates,
-   Dowdall (:class:`Dowdall`) gives the harmonic series,
-   modified Borda (:class:`ModifiedBorda`) stretches a partial ranking over
    the point range of a full one,
-   truncated Borda (:class:`TruncatedBorda`) gives points by position among
    the candidates ranked on the ballot.

The variants are assembled in the `RANK_SCORERS` dictionary keyed by their
name; :func:`construct` retrieves them from it.
'''

import abc
from typing import List, Dict, Union

from votetally.errors import InvalidConfiguration
from votetally.persist import simple_serialization
from votetally.weight import Weight, WeightBackend


class RankScorer(metaclass=abc.ABCMeta):
    '''An abstract base class for rank scorers.

    Rank scorers must provide a `scores()` method that returns a list of
    points based on the number of ranks given. The total number of declared
    candidates must be set with `set_n_candidates()` before `scores()` is
    called.
    '''
    n_candidates = None

    def set_n_candidates(self, n_candidates: int) -> None:
        '''Set the total number of candidates that could be ranked.

        :param n_candidates: The total number of candidates that could be
            ranked on any ballot.
        '''
        self.n_candidates = n_candidates

    def check_backend(self, backend: WeightBackend) -> None:
        '''Check that the points can be represented by the backend.

        :raises InvalidConfiguration: If they cannot.
        '''
        pass

    def scores(self, n_ranked: int, backend: WeightBackend) -> List[Weight]:
        '''Return the points for the first n_ranked ranks.

        :param n_ranked: Number of ranks on the ballot. Equal to the length
            of the output list.
        :param backend: Weight backend of the count.
        :raises RuntimeError: If the scorer has not been initialized first by
            calling ``set_n_candidates()``.
        '''
        if self.n_candidates is None:
            raise RuntimeError(
                'scorer not initialized, call set_n_candidates() first'
            )
        if n_ranked > self.n_candidates:
            raise ValueError(f'cannot rank {n_ranked} out of maximum'
                             f' {self.n_candidates} candidates')
        return [self.score(rank, n_ranked, backend) for rank in range(n_ranked)]

    @abc.abstractmethod
    def score(self, rank: int, n_ranked: int, backend: WeightBackend
              ) -> Weight:
        raise NotImplementedError


@simple_serialization
class Borda(RankScorer):
    '''Classic Borda rank scorer.

    Gives ``N - 1 - rank + base`` points, where N is the number of declared
    candidates, regardless of how many candidates the ballot ranks.

    :param base: The points for the candidate ranked last among all
        declared candidates. Zero by default; the truly original Borda uses
        one.
    '''
    def __init__(self, base: int = 0):
        self.base = base

    def score(self, rank: int, n_ranked: int, backend: WeightBackend
              ) -> Weight:
        return backend.from_int(self.n_candidates - 1 - rank + self.base)


@simple_serialization
class Dowdall(RankScorer):
    '''Dowdall (Nauru) rank scorer.

    Assigns the numbers of the harmonic series (1, 1/2, 1/3...) to
    progressively lower ranks. Requires fractional weights.
    '''
    def check_backend(self, backend: WeightBackend) -> None:
        if not backend.divisible:
            raise InvalidConfiguration(
                f'Dowdall scoring requires fractional weights, the'
                f' {backend.name} backend cannot represent them'
            )

    def score(self, rank: int, n_ranked: int, backend: WeightBackend
              ) -> Weight:
        return backend.scale(backend.one(), 1, rank + 1)


@simple_serialization
class ModifiedBorda(RankScorer):
    '''Modified Borda count rank scorer.

    Gives ``(n - 1 - rank) * (N - 1) / (n - 1)`` points for a ballot ranking
    n out of N declared candidates, so that a partial ranking spans the same
    point range as a full one. A ballot ranking a single candidate gives it
    ``N - 1`` points. Integer weights truncate the points.
    '''
    def score(self, rank: int, n_ranked: int, backend: WeightBackend
              ) -> Weight:
        if n_ranked == 1:
            return backend.from_int(self.n_candidates - 1)
        return backend.scale(
            backend.from_int(n_ranked - 1 - rank),
            self.n_candidates - 1,
            n_ranked - 1,
        )


@simple_serialization
class TruncatedBorda(RankScorer):
    '''Truncated Borda rank scorer.

    Gives ``n - 1 - rank + base`` points for a ballot ranking n candidates,
    so that ranking more candidates increases the points given to the top
    ones.

    :param base: The points for the candidate ranked last on the ballot.
    '''
    def __init__(self, base: int = 0):
        self.base = base

    def score(self, rank: int, n_ranked: int, backend: WeightBackend
              ) -> Weight:
        return backend.from_int(n_ranked - 1 - rank + self.base)


RANK_SCORERS: Dict[str, type] = {
    'classic': Borda,
    'dowdall': Dowdall,
    'modified': ModifiedBorda,
    'truncated': TruncatedBorda,
}

BASED_VARIANTS = ('classic', 'truncated')


def construct(variant: Union[str, RankScorer] = 'classic',
              base: int = 0,
              ) -> RankScorer:
    '''Construct a rank scorer by its variant name.

    :param variant: Name of the variant from `RANK_SCORERS`, or a rank
        scorer object to be passed through.
    :param base: Points for the last rank, for the variants that have them.
    :raises InvalidConfiguration: If the variant is unknown or does not
        accept a base.
    '''
    if isinstance(variant, RankScorer):
        return variant
    try:
        scorer_cls = RANK_SCORERS[variant]
    except (KeyError, TypeError):
        raise InvalidConfiguration(
            f'unknown Borda variant: {variant!r}, expected one of'
            f' {", ".join(RANK_SCORERS)}'
        )
    if variant in BASED_VARIANTS:
        return scorer_cls(base=base)
    elif base != 0:
        raise InvalidConfiguration(f'Borda variant {variant} has no base')
    return scorer_cls()
