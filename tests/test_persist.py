
import sys
import os
import json
import decimal
from fractions import Fraction
from decimal import Decimal

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
import votetally.persist
import votetally.system
import votetally.weight
import votetally.component.quota
import votetally.component.tiebreak
import votetally.evaluate.approval
import votetally.evaluate.cardinal
import votetally.evaluate.condorcet
import votetally.evaluate.core
import votetally.evaluate.positional
import votetally.evaluate.sequential


SERIALIZABLE_OBJECTS = [
    votetally.evaluate.core.Plurality(),
    votetally.evaluate.approval.ApprovalVoting(),
    votetally.evaluate.cardinal.ScoreVoting(score_range=(0, 10)),
    votetally.evaluate.positional.Borda(variant='truncated', base=1),
    votetally.evaluate.condorcet.CondorcetWinner(unranked='ignore'),
    votetally.evaluate.condorcet.Schulze(pairwin_scoring='margins'),
    votetally.evaluate.sequential.TransferableVoteSelector(
        quota='hare', tie_break=['B', 'A', 'C'], accept_quota_equal=False
    ),
    votetally.evaluate.sequential.TransferableVoteSelector(
        quota=votetally.component.quota.hagenbach_bischoff,
    ),
    votetally.evaluate.sequential.TransferableVoteSelector(
        quota=votetally.component.quota.constant(12),
        tie_break=votetally.component.tiebreak.PreviousRounds(
            fallback=votetally.component.tiebreak.FirstAppearance()
        ),
    ),
    votetally.evaluate.sequential.InstantRunoff(tie_break='first_appearance'),
    votetally.weight.FractionBackend(),
    votetally.weight.BackendAdapter(votetally.weight.FractionBackend()),
    votetally.weight.FixedPointBackend(places=2,
                                       rounding=decimal.ROUND_HALF_EVEN),
    votetally.system.get_system('borda', variant='modified'),
]


@pytest.mark.parametrize('obj', SERIALIZABLE_OBJECTS)
def test_roundtrip(obj):
    serialized = votetally.persist.to_dict(obj)
    rebuilt = votetally.persist.from_dict(json.loads(json.dumps(serialized)))
    assert type(rebuilt) is type(obj)
    assert votetally.persist.to_dict(rebuilt) == serialized


def test_class_names():
    serialized = votetally.persist.to_dict(
        votetally.system.get_system('schulze')
    )
    assert serialized['class'] == 'votetally.system.VotingSystem'
    assert serialized['name'] == 'Schulze'
    assert serialized['evaluator'] == {
        'class': 'votetally.evaluate.condorcet.Schulze',
        'pairwin_scoring': 'winning_votes',
        'unranked': 'bottom',
        'winners': 1,
    }


def test_callable_reference():
    serialized = votetally.persist.to_dict(
        votetally.evaluate.sequential.TransferableVoteSelector(
            quota=votetally.component.quota.droop,
        )
    )
    assert serialized['quota'] == {
        'callable': 'votetally.component.quota.droop'
    }


@pytest.mark.parametrize('value, serialized', [
    (Fraction(3, 4), {'type': 'Fraction', 'arguments': [3, 4]}),
    (Decimal('1.50'), {'type': 'Decimal', 'value': '1.50'}),
    (frozenset(['b', 'c', 'a']), {'type': 'frozenset',
                                  'value': ['a', 'b', 'c']}),
    (('a', 1), {'type': 'tuple', 'value': ['a', 1]}),
    ({'x': Fraction(1)}, {'x': {'type': 'Fraction', 'arguments': [1, 1]}}),
])
def test_serialize_value(value, serialized):
    assert votetally.persist.serialize_value(value) == serialized
    assert votetally.persist.deserialize_value(serialized) == value


def test_sorted_items_mixed():
    assert votetally.persist.sorted_items([2, 'a', 1]) == ['a', 1, 2]


@pytest.mark.parametrize('bad', [
    [],
    {'name': 'x'},
    {'class': '.relative'},
    {'class': 'not an identifier'},
    {'class': 'Plurality'},
])
def test_from_dict_invalid(bad):
    with pytest.raises(ValueError):
        votetally.persist.from_dict(bad)


def test_tuple_keyed_dict():
    value = {('A', 'B'): Fraction(1, 2), ('B', 'A'): 0}
    serialized = votetally.persist.serialize_value(value)
    assert serialized['type'] == 'dict'
    rebuilt = votetally.persist.deserialize_value(
        json.loads(json.dumps(serialized))
    )
    assert rebuilt == value


@pytest.mark.parametrize('identifier', [
    'os.system',
    'builtins.eval',
    'votetally.nonexistent.Evaluator',
    'votetally.evaluate.core.NoSuchEvaluator',
])
def test_load_refused(identifier):
    with pytest.raises(ValueError):
        votetally.persist.from_dict({'class': identifier})
    with pytest.raises(ValueError):
        votetally.persist.deserialize_value({'callable': identifier})


def test_unknown_value_type():
    with pytest.raises(ValueError):
        votetally.persist.deserialize_value({'type': 'complex', 'value': 1})


def test_backend_adapter():
    adapter = votetally.weight.BackendAdapter(
        votetally.weight.FixedPointBackend(places=2)
    )
    serialized = votetally.persist.to_dict(adapter)
    assert serialized['inner']['class'] == \
        'votetally.weight.FixedPointBackend'
    rebuilt = votetally.persist.from_dict(serialized)
    assert rebuilt.inner.places == 2
    assert rebuilt.name == 'fixed'


def test_backend_adapter_foreign():
    with pytest.raises(ValueError):
        votetally.persist.to_dict(votetally.weight.BackendAdapter(object()))
    with pytest.raises(ValueError):
        votetally.persist.from_dict({
            'class': 'votetally.weight.BackendAdapter',
            'inner': {'class': 'mypackage.backends.DuckBackend'},
        })
