
import sys
import os
from fractions import Fraction

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))
import votetally.ballot
import votetally.evaluate.core
import votetally.weight
from votetally.errors import EmptyElectorate, InvalidConfiguration
from votetally.result import Tie

CANDIDATES = ('A', 'B', 'C', 'D')
FRACTION = votetally.weight.FractionBackend()
PLURALITY = votetally.evaluate.core.Plurality()

VOTES = {
    'clear': {'A': 10, 'B': 5, 'C': 2},
    'tied': {'A': 10, 'B': 5, 'C': 10},
    'fractional': {'A': Fraction(7, 2), 'B': Fraction(10, 3)},
}

RESULTS = {
    'clear': (frozenset(['A']), frozenset(['B']), frozenset(['C']),
              frozenset(['D'])),
    'tied': (Tie(['A', 'C']), frozenset(['B']), frozenset(['D'])),
    'fractional': (frozenset(['A']), frozenset(['B']), Tie(['C', 'D'])),
}


def ballot_box(votes, backend=FRACTION):
    return votetally.ballot.ingest(
        votes, CANDIDATES, PLURALITY.validator(), backend
    )


@pytest.mark.parametrize('name', list(VOTES.keys()))
def test_plurality(name):
    result = PLURALITY.evaluate(ballot_box(VOTES[name]), FRACTION)
    assert result.ranking == RESULTS[name]
    assert result.winners == RESULTS[name][0]
    assert result.method == 'plurality'
    assert set(result.totals) == set(CANDIDATES)


MULTI_WINNER_RESULTS = {
    ('clear', 2): (set('AB'), set()),
    ('clear', 3): (set('ABC'), set()),
    ('tied', 1): (set('AC'), set('AC')),
    ('tied', 2): (set('AC'), set()),
    ('tied', 3): (set('ABC'), set()),
    ('fractional', 3): (set('ABCD'), set('CD')),
    ('fractional', 5): (set('ABCD'), set()),
}


@pytest.mark.parametrize('name, winners', list(MULTI_WINNER_RESULTS.keys()))
def test_plurality_multiple_winners(name, winners):
    evaluator = votetally.evaluate.core.Plurality(winners=winners)
    result = evaluator.evaluate(ballot_box(VOTES[name]), FRACTION)
    expected_winners, expected_overflow = MULTI_WINNER_RESULTS[name, winners]
    assert result.winners == expected_winners
    assert result.overflow == expected_overflow
    assert result.seats == winners
    assert result.ranking == RESULTS[name]


@pytest.mark.parametrize('winners', [0, -1, 1.5, True, '2', None])
def test_invalid_winners(winners):
    with pytest.raises(InvalidConfiguration):
        votetally.evaluate.core.Plurality(winners=winners)


def test_plurality_tie():
    result = PLURALITY.evaluate(ballot_box(VOTES['tied']), FRACTION)
    assert result.is_tied
    assert result.winner is None
    assert Tie.any(result.ranking)
    assert Tie.break_by_list(result.ranking, list('CBAD')) == list('CABD')


def test_result_readonly():
    result = PLURALITY.evaluate(ballot_box(VOTES['clear']), FRACTION)
    with pytest.raises(TypeError):
        result.totals['A'] = 0
    with pytest.raises(AttributeError):
        result.winners = frozenset()


def test_result_to_dict():
    result = PLURALITY.evaluate(ballot_box(VOTES['tied']), FRACTION)
    assert result.to_dict() == {
        'method': 'plurality',
        'seats': 1,
        'winners': ['A', 'C'],
        'overflow': ['A', 'C'],
        'ranking': [['A', 'C'], ['B'], ['D']],
        'totals': [
            ['A', {'type': 'Fraction', 'arguments': [10, 1]}],
            ['B', {'type': 'Fraction', 'arguments': [5, 1]}],
            ['C', {'type': 'Fraction', 'arguments': [10, 1]}],
            ['D', {'type': 'Fraction', 'arguments': [0, 1]}],
        ],
        'rejected': [],
        'details': {},
    }


def test_empty():
    with pytest.raises(EmptyElectorate):
        PLURALITY.evaluate(ballot_box({}), FRACTION)
    with pytest.raises(EmptyElectorate):
        PLURALITY.evaluate(ballot_box({'A': 0, 'B': 0}), FRACTION)


def test_integer_backend():
    backend = votetally.weight.IntegerBackend()
    result = PLURALITY.evaluate(ballot_box(VOTES['clear'], backend), backend)
    assert dict(result.totals) == {'A': 10, 'B': 5, 'C': 2, 'D': 0}
    assert all(type(total) is int for total in result.totals.values())
