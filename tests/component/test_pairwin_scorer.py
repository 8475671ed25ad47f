
import sys
import os
from fractions import Fraction

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))
import votetally.component.pairwin_scorer as ps
import votetally.pairwise
import votetally.weight
from votetally.errors import InvalidConfiguration


FRACTION = votetally.weight.FractionBackend()

# A beats B 5:3, B beats C 4:0 (unopposed), A and C are level 2:2
WINS = {
    ('A', 'B'): 5, ('B', 'A'): 3,
    ('B', 'C'): 4,
    ('A', 'C'): 2, ('C', 'A'): 2,
}

SCORES = {
    'winning_votes': {('A', 'B'): 5, ('B', 'C'): 4},
    'margins': {('A', 'B'): 2, ('B', 'A'): -2, ('B', 'C'): 4,
                ('C', 'B'): -4},
    'losing_votes': {('A', 'B'): 3},
    # the unopposed win is scaled past any opposed ratio: (5 + 4) / 3
    'ratio': {('A', 'B'): Fraction(5, 3), ('B', 'C'): 3},
}


def matrix(backend=FRACTION, wins=WINS):
    return votetally.pairwise.PairwiseMatrix(tuple('ABC'), backend, wins)


@pytest.mark.parametrize('name', list(SCORES.keys()))
def test_scorer(name):
    scores = ps.get(name)(matrix())
    expected = SCORES[name]
    assert set(scores) == set(matrix().pairs())
    for pair, score in scores.items():
        assert score == expected.get(pair, 0)


def test_ratio_unopposed_above_opposed():
    scores = ps.ratio(matrix())
    assert scores['B', 'C'] > scores['A', 'B']


def test_ratio_all_unopposed():
    scores = ps.ratio(matrix(wins={('A', 'B'): 2, ('A', 'C'): 3}))
    assert scores['A', 'B'] == 3 + 2
    assert scores['A', 'C'] == 3 + 3
    assert scores['B', 'C'] == 0


def test_ratio_fixed_point():
    fixed = votetally.weight.FixedPointBackend(places=4)
    wins = {pair: fixed.coerce(count) for pair, count in WINS.items()}
    scores = ps.ratio(matrix(fixed, wins))
    assert str(scores['A', 'B']) == '1.6666'


def test_ratio_integer():
    with pytest.raises(InvalidConfiguration):
        ps.ratio(matrix(votetally.weight.IntegerBackend()))


@pytest.mark.parametrize('name', ['ranked_pairs', None, 3])
def test_unknown(name):
    with pytest.raises(InvalidConfiguration):
        ps.construct(name)


def test_custom_passthrough():
    def custom(matrix):
        return {}
    assert ps.construct(custom) is custom
