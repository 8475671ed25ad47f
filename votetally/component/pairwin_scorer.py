'''Functions to score magnitudes of wins between pairs of candidates.

These are used in the Schulze method to determine the strength of the link
between each pair of candidates. A scorer takes a pairwise matrix and returns
the link strength of every ordered pair of candidates.
'''

from typing import Callable, Dict, Tuple

import votetally.component.core
from votetally.candidate import Candidate
from votetally.errors import InvalidConfiguration
from votetally.pairwise import PairwiseMatrix
from votetally.weight import Weight


PAIRWIN_SCORERS = {}


pairwin_scorer_mark, get, construct = \
    votetally.component.core.register_functions(
        PAIRWIN_SCORERS, 'pairwise win scorer', Callable[
            [PairwiseMatrix],
            Dict[Tuple[Candidate, Candidate], Weight]
        ]
    )


@pairwin_scorer_mark
def winning_votes(matrix: PairwiseMatrix
                  ) -> Dict[Tuple[Candidate, Candidate], Weight]:
    '''Winning votes pairwise win scorer. Counts wins fully, zero otherwise.

    This is the most common pairwise win scorer. When the weight of ballots
    ranking the pair in one direction is larger than the other direction,
    assigns all that weight as the pairwise win strength.

    :param matrix: Counts of pairwise preferences.
    '''
    zero = matrix.backend.zero()
    return {
        (a, b): (matrix.wins(a, b) if matrix.beats(a, b) else zero)
        for a, b in matrix.pairs()
    }


@pairwin_scorer_mark
def margins(matrix: PairwiseMatrix
            ) -> Dict[Tuple[Candidate, Candidate], Weight]:
    '''Margins pairwise win scorer. Takes the difference from reverse option.

    Also called margin of victory or defeat strength. Assigns the weight of
    ballots ranking the pair in the given order minus the weight of those
    doing the reverse as the win strength (which is thus negative for
    pairwise losses).

    :param matrix: Counts of pairwise preferences.
    '''
    return {(a, b): matrix.margin(a, b) for a, b in matrix.pairs()}


@pairwin_scorer_mark
def ratio(matrix: PairwiseMatrix) -> Dict[Tuple[Candidate, Candidate], Weight]:
    '''Ratio pairwise win scorer. Divides the support by the opposition.

    Assigns the weight of ballots ranking the pair in the given order divided
    by the weight of those doing the reverse to pairwise wins, zero
    otherwise. An unopposed win has no finite ratio; such wins are ranked
    above all opposed ones, and among themselves by their support.

    :param matrix: Counts of pairwise preferences.
    :raises InvalidConfiguration: If the weight backend cannot represent
        fractions.
    '''
    backend = matrix.backend
    if not backend.divisible:
        raise InvalidConfiguration(
            'ratio pairwise win scoring needs fractional weights, the'
            f' {backend.name} backend cannot divide'
        )
    one = backend.one()
    won = [(a, b) for a, b in matrix.pairs() if matrix.beats(a, b)]
    opposed = {
        (a, b) for a, b in won if backend.is_positive(matrix.wins(b, a))
    }
    if len(opposed) < len(won):
        # no opposed ratio exceeds the largest support over the least
        # opposition
        ceiling = backend.max(matrix.wins(a, b) for a, b in won)
        least_opposition = backend.min(
            matrix.wins(b, a) for a, b in opposed
        ) if opposed else one
    scores = {pair: backend.zero() for pair in matrix.pairs()}
    for a, b in won:
        support = matrix.wins(a, b)
        if (a, b) in opposed:
            scores[a, b] = backend.scale(support, one, matrix.wins(b, a))
        else:
            scores[a, b] = backend.scale(
                backend.add(ceiling, support), one, least_opposition
            )
    return scores


@pairwin_scorer_mark
def losing_votes(matrix: PairwiseMatrix
                 ) -> Dict[Tuple[Candidate, Candidate], Weight]:
    '''Losing votes pairwise win scorer. Counts the opposition of wins.

    Assigns the weight of ballots ranking the pair in the reverse order as
    the strength of a pairwise win, zero otherwise. An unopposed win thus
    forms no link. Not recommended.

    :param matrix: Counts of pairwise preferences.
    '''
    zero = matrix.backend.zero()
    return {
        (a, b): (matrix.wins(b, a) if matrix.beats(a, b) else zero)
        for a, b in matrix.pairs()
    }
