
import sys
import os
import random

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))
import votetally.ballot
import votetally.evaluate.condorcet
import votetally.pairwise
import votetally.weight
from votetally.errors import InvalidConfiguration
from votetally.result import Tie

FRACTION = votetally.weight.FractionBackend()

ELECTIONS = {
    # https://en.wikipedia.org/wiki/Schulze_method#Example
    'wikipedia': ('ABCDE', {
        tuple('ACBED'): 5,
        tuple('ADECB'): 5,
        tuple('BEDAC'): 8,
        tuple('CABED'): 3,
        tuple('CAEBD'): 7,
        tuple('CBADE'): 2,
        tuple('DCEBA'): 7,
        tuple('EBADC'): 8,
    }),
    'winner': ('ABC', {
        tuple('ABC'): 5,
        tuple('BAC'): 4,
        tuple('CBA'): 2,
    }),
    'cycle': ('ABC', {
        tuple('ABC'): 1,
        tuple('BCA'): 1,
        tuple('CAB'): 1,
    }),
    'shared': ('ABC', {
        ('A', frozenset('BC')): 3,
        ('B', 'A'): 1,
    }),
}

CONDORCET_RESULTS = {
    ('wikipedia', 'bottom'): (set(), (Tie('ABCDE'), )),
    ('winner', 'bottom'): ({'B'}, (frozenset('B'), frozenset('A'),
                                   frozenset('C'))),
    ('cycle', 'bottom'): (set(), (Tie('ABC'), )),
    ('shared', 'bottom'): ({'A'}, (frozenset('A'), frozenset('B'),
                                   frozenset('C'))),
    ('shared', 'ignore'): ({'A'}, (frozenset('A'), Tie('BC'))),
}

SCHULZE_RESULTS = {
    ('wikipedia', 'winning_votes'): tuple(frozenset(c) for c in 'EACBD'),
    ('winner', 'winning_votes'): tuple(frozenset(c) for c in 'BAC'),
    ('winner', 'margins'): tuple(frozenset(c) for c in 'BAC'),
    ('winner', 'ratio'): tuple(frozenset(c) for c in 'BAC'),
    ('winner', 'losing_votes'): tuple(frozenset(c) for c in 'BAC'),
    ('cycle', 'winning_votes'): (Tie('ABC'), ),
    ('cycle', 'margins'): (Tie('ABC'), ),
    ('cycle', 'ratio'): (Tie('ABC'), ),
    ('cycle', 'losing_votes'): (Tie('ABC'), ),
}

WIKIPEDIA_PATHS = {
    'AB': 28, 'AC': 28, 'AD': 30, 'AE': 24,
    'BA': 25, 'BC': 28, 'BD': 33, 'BE': 24,
    'CA': 25, 'CB': 29, 'CD': 29, 'CE': 24,
    'DA': 25, 'DB': 28, 'DC': 28, 'DE': 24,
    'EA': 25, 'EB': 28, 'EC': 28, 'ED': 31,
}

WIKIPEDIA_WINS = {
    'AB': 20, 'AC': 26, 'AD': 30, 'AE': 22,
    'BA': 25, 'BC': 16, 'BD': 33, 'BE': 18,
    'CA': 19, 'CB': 29, 'CD': 17, 'CE': 24,
    'DA': 15, 'DB': 12, 'DC': 28, 'DE': 14,
    'EA': 23, 'EB': 27, 'EC': 21, 'ED': 31,
}


def evaluate(evaluator, election, workers=1):
    candidates, votes = ELECTIONS[election]
    box = votetally.ballot.ingest(
        votes, tuple(candidates), evaluator.validator(), FRACTION
    )
    return evaluator.evaluate(box, FRACTION, workers=workers)


@pytest.mark.parametrize('election, unranked', list(CONDORCET_RESULTS.keys()))
def test_condorcet_winner(election, unranked):
    evaluator = votetally.evaluate.condorcet.CondorcetWinner(unranked)
    result = evaluate(evaluator, election)
    winners, ranking = CONDORCET_RESULTS[election, unranked]
    assert result.winners == winners
    assert result.ranking == ranking
    assert isinstance(result.details['matrix'],
                      votetally.pairwise.PairwiseMatrix)


@pytest.mark.parametrize('election, scoring', list(SCHULZE_RESULTS.keys()))
def test_schulze(election, scoring):
    evaluator = votetally.evaluate.condorcet.Schulze(scoring)
    result = evaluate(evaluator, election)
    assert result.ranking == SCHULZE_RESULTS[election, scoring]
    assert result.winners == SCHULZE_RESULTS[election, scoring][0]


def test_schulze_cycle_tie():
    result = evaluate(votetally.evaluate.condorcet.Schulze(), 'cycle')
    assert result.is_tied
    assert result.winner is None
    assert result.winners == {'A', 'B', 'C'}


def test_wikipedia_matrix():
    result = evaluate(votetally.evaluate.condorcet.Schulze(), 'wikipedia')
    matrix = result.details['matrix']
    for (a, b), wins in WIKIPEDIA_WINS.items():
        assert matrix.wins(a, b) == wins


def test_wikipedia_paths():
    result = evaluate(votetally.evaluate.condorcet.Schulze(), 'wikipedia')
    paths = result.details['strongest_paths']
    assert {a + b: strength for (a, b), strength in paths.items()} \
        == WIKIPEDIA_PATHS


@pytest.mark.parametrize('workers', [2, 3, 8])
def test_schulze_workers(workers):
    evaluator = votetally.evaluate.condorcet.Schulze()
    sequential = evaluate(evaluator, 'wikipedia')
    parallel = evaluate(evaluator, 'wikipedia', workers=workers)
    assert parallel.ranking == sequential.ranking
    assert parallel.details['matrix'] == sequential.details['matrix']
    assert parallel.to_dict() == sequential.to_dict()


def random_elections(n_elections, seed):
    random.seed(seed)
    cands = 'ABCDE'
    for i in range(n_elections):
        votes = {}
        for j in range(random.randint(1, 12)):
            ranking = tuple(random.sample(cands, random.randint(1, 5)))
            votes[ranking] = votes.get(ranking, 0) + random.randint(1, 10)
        yield votes


@pytest.mark.parametrize('votes', list(random_elections(100, 1711)))
@pytest.mark.parametrize('scoring', ['winning_votes', 'margins'])
def test_schulze_condorcet_consistent(votes, scoring):
    candidates = tuple('ABCDE')
    box = votetally.ballot.ingest(
        votes, candidates,
        votetally.ballot.RankedVoteValidator(allow_shared_ranks=True),
        FRACTION,
    )
    condorcet = votetally.evaluate.condorcet.CondorcetWinner().evaluate(
        box, FRACTION
    )
    schulze = votetally.evaluate.condorcet.Schulze(scoring).evaluate(
        box, FRACTION
    )
    if condorcet.winners:
        assert schulze.ranking[0] == condorcet.winners
    # the Schulze top tier always lies within the Smith set
    assert schulze.ranking[0] <= condorcet.ranking[0]


def test_smith_tiers_partial_cycle():
    matrix = votetally.pairwise.PairwiseMatrix(
        tuple('ABCD'), FRACTION,
        {('D', 'A'): 1, ('D', 'B'): 1, ('D', 'C'): 1,
         ('A', 'B'): 1, ('B', 'C'): 1, ('C', 'A'): 1},
    )
    assert votetally.evaluate.condorcet.smith_tiers(matrix) == (
        frozenset('D'), Tie('ABC')
    )
    assert votetally.evaluate.condorcet.condorcet_winner(matrix) == ['D']


def test_schulze_ratio_needs_fractions():
    integer = votetally.weight.IntegerBackend()
    candidates, votes = ELECTIONS['winner']
    evaluator = votetally.evaluate.condorcet.Schulze('ratio')
    box = votetally.ballot.ingest(
        votes, tuple(candidates), evaluator.validator(), integer
    )
    with pytest.raises(InvalidConfiguration):
        evaluator.evaluate(box, integer)


def test_schulze_winners():
    evaluator = votetally.evaluate.condorcet.Schulze(winners=2)
    result = evaluate(evaluator, 'wikipedia')
    assert result.winners == {'E', 'A'}
    assert not result.overflow
    result = evaluate(
        votetally.evaluate.condorcet.Schulze(winners=2), 'cycle'
    )
    assert result.winners == {'A', 'B', 'C'}
    assert result.overflow == {'A', 'B', 'C'}
