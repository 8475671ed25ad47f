
import sys
import os
import random
import logging
from fractions import Fraction

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
import votetally.convert
import votetally.pairwise
import votetally.weight
from votetally.component import rankscore
from votetally.errors import InvalidConfiguration


CANDIDATES = ('A', 'B', 'C', 'D')
FRACTION = votetally.weight.FractionBackend()

RANKED_VOTES = {
    ('A', 'B', 'C'): 5,
    ('B', frozenset(['A', 'C'])): 3,
    ('D', ): 2,
}

# a larger random set of ranked votes, fixed by the seed
random.seed(1711)
RANDOM_VOTES = {}
for i in range(200):
    ranking = tuple(random.sample(CANDIDATES, random.randint(1, 4)))
    RANDOM_VOTES[ranking] = Fraction(random.randint(1, 40), random.randint(1, 3))


def test_simple_totals():
    totals = votetally.convert.SimpleVoteTotals().convert(
        {'B': 3, 'A': 2}, CANDIDATES, FRACTION
    )
    assert totals == {'A': 2, 'B': 3, 'C': 0, 'D': 0}
    assert list(totals.keys()) == list(CANDIDATES)


def test_approval_totals():
    totals = votetally.convert.ApprovalToSimpleVotes().convert(
        {frozenset('AB'): 3, frozenset('BC'): 2}, CANDIDATES, FRACTION
    )
    assert totals == {'A': 3, 'B': 5, 'C': 2, 'D': 0}


def test_score_totals():
    totals = votetally.convert.ScoreToSimpleVotes().convert(
        {
            frozenset([('A', 5), ('B', 3)]): 2,
            frozenset([('B', Fraction(1, 2))]): 3,
        },
        CANDIDATES, FRACTION
    )
    assert totals == {'A': 10, 'B': Fraction(15, 2), 'C': 0, 'D': 0}


def test_positional_totals():
    converter = votetally.convert.RankedToPositionalVotes(
        rankscore.Borda(base=1)
    )
    totals = converter.convert(
        {('A', 'B', 'C'): 2, ('C', ): 1}, CANDIDATES, FRACTION
    )
    assert totals == {'A': 8, 'B': 6, 'C': 4 + 4, 'D': 0}


def test_pairwise_bottom():
    matrix = votetally.convert.RankedToPairwiseMatrix().convert(
        RANKED_VOTES, CANDIDATES, FRACTION
    )
    assert matrix.wins('A', 'B') == 5
    assert matrix.wins('B', 'A') == 3
    assert matrix.wins('B', 'C') == 8
    assert matrix.wins('A', 'C') == 5
    assert matrix.wins('C', 'A') == 0
    assert matrix.ties('A', 'C') == matrix.ties('C', 'A') == 3
    assert matrix.wins('A', 'D') == 8
    assert matrix.wins('D', 'A') == 2
    assert matrix.wins('D', 'B') == 2
    assert matrix.margin('A', 'D') == 6
    assert matrix.beats('B', 'C')
    assert not matrix.beats('C', 'A')


def test_pairwise_ignore():
    matrix = votetally.convert.RankedToPairwiseMatrix('ignore').convert(
        RANKED_VOTES, CANDIDATES, FRACTION
    )
    assert matrix.wins('A', 'D') == 0
    assert matrix.wins('D', 'A') == 0
    assert matrix.wins('A', 'B') == 5
    assert matrix.wins('B', 'A') == 3
    assert matrix.ties('A', 'C') == 3


def test_pairwise_unknown_policy():
    with pytest.raises(InvalidConfiguration):
        votetally.convert.RankedToPairwiseMatrix('top')


@pytest.mark.parametrize('workers', [2, 3, 8, 64])
def test_pairwise_workers(workers):
    converter = votetally.convert.RankedToPairwiseMatrix()
    sequential = converter.convert(RANDOM_VOTES, CANDIDATES, FRACTION)
    parallel = converter.convert(RANDOM_VOTES, CANDIDATES, FRACTION,
                                 workers=workers)
    assert parallel == sequential
    assert parallel.win_counts() == sequential.win_counts()


@pytest.mark.parametrize('workers', [2, 3, 8])
@pytest.mark.parametrize('backend', [
    votetally.weight.FractionBackend(),
    votetally.weight.FixedPointBackend(places=3),
])
def test_positional_workers(workers, backend):
    votes = {vote: backend.coerce(weight)
             for vote, weight in RANDOM_VOTES.items()
             if Fraction(weight).denominator == 1}
    converter = votetally.convert.RankedToPositionalVotes(rankscore.Dowdall())
    sequential = converter.convert(votes, CANDIDATES, backend)
    parallel = converter.convert(votes, CANDIDATES, backend, workers=workers)
    assert parallel == sequential
    assert list(parallel.keys()) == list(sequential.keys())


def test_inexact_backend_sequential(caplog):
    backend = votetally.weight.FloatBackend()
    votes = {vote: float(weight) for vote, weight in RANDOM_VOTES.items()}
    converter = votetally.convert.RankedToPositionalVotes(rankscore.Dowdall())
    with caplog.at_level(logging.WARNING, logger='votetally.util'):
        parallel = converter.convert(votes, CANDIDATES, backend, workers=4)
    assert 'sequentially' in caplog.text
    assert parallel == converter.convert(votes, CANDIDATES, backend)


def test_matrix_merge():
    matrix1 = votetally.pairwise.PairwiseMatrix(
        ('A', 'B'), FRACTION, {('A', 'B'): 2}, {('A', 'B'): 1}
    )
    matrix2 = votetally.pairwise.PairwiseMatrix(
        ('A', 'B'), FRACTION, {('A', 'B'): 1, ('B', 'A'): 4}
    )
    merged = matrix1.merge(matrix2)
    assert merged.wins('A', 'B') == 3
    assert merged.wins('B', 'A') == 4
    assert merged.ties('B', 'A') == 1
    assert matrix1.wins('A', 'B') == 2


def test_matrix_merge_different_candidates():
    matrix1 = votetally.pairwise.PairwiseMatrix(('A', 'B'), FRACTION)
    matrix2 = votetally.pairwise.PairwiseMatrix(('B', 'A'), FRACTION)
    with pytest.raises(InvalidConfiguration):
        matrix1.merge(matrix2)
