
import sys
import os

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))
import votetally.ballot
import votetally.evaluate.approval
import votetally.weight

CANDIDATES = ('A', 'B', 'C')
FRACTION = votetally.weight.FractionBackend()
APPROVAL = votetally.evaluate.approval.ApprovalVoting()

VOTES = {
    'simple': {
        frozenset('AB'): 3,
        frozenset('BC'): 2,
        frozenset('A'): 1,
    },
    'lists': [['A', 'C'], ['C'], {'B', 'C'}, ['A']],
}

RESULTS = {
    'simple': ({'B'}, {'A': 4, 'B': 5, 'C': 2}),
    'lists': ({'C'}, {'A': 2, 'B': 1, 'C': 3}),
}


@pytest.mark.parametrize('name', list(VOTES.keys()))
def test_approval(name):
    box = votetally.ballot.ingest(
        VOTES[name], CANDIDATES, APPROVAL.validator(), FRACTION
    )
    result = APPROVAL.evaluate(box, FRACTION)
    winners, totals = RESULTS[name]
    assert result.winners == winners
    assert dict(result.totals) == totals
    assert result.method == 'approval'


def test_approval_rejects_duplicates():
    box = votetally.ballot.ingest(
        [['A', 'A'], ['B']], CANDIDATES, APPROVAL.validator(), FRACTION
    )
    result = APPROVAL.evaluate(box, FRACTION)
    assert result.winner == 'B'
    assert len(result.rejected) == 1
