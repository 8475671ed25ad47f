'''Tally results.

Every method except STV produces a :class:`Result`; the STV engine produces
an :class:`STVResult` carrying the audit trail of the count as a tuple of
:class:`RoundSnapshot` objects. Rankings are tuples of tiers, each tier
a frozen set of candidates; candidates that are tied share a tier, which is
then a :class:`Tie`.

Results are immutable and are serialized one way only, by their ``to_dict()``
methods, with sets sorted so that the output is deterministic.
'''

from __future__ import annotations

import enum
import collections
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple, Union

from votetally.candidate import Candidate
from votetally.persist import serialize_value, sorted_items
from votetally.weight import Weight, WeightBackend


class Tie(frozenset):
    '''Candidates tied for a place in the ranking.

    This object, a subclass of ``frozenset``, appears as a ranking tier when
    the tally could not tell the candidates apart.
    '''
    @staticmethod
    def any(ranking: Tuple[FrozenSet[Candidate], ...]) -> bool:
        '''Return True if there is any tie in the ranking, False otherwise.'''
        return any(isinstance(tier, Tie) for tier in ranking)

    @classmethod
    def break_by_list(cls,
                      ranking: Tuple[FrozenSet[Candidate], ...],
                      breaker: List[Candidate],
                      ) -> List[Candidate]:
        '''Flatten the ranking, ordering tied candidates as in breaker.'''
        broken = []
        for tier in ranking:
            if len(tier) > 1:
                broken.extend(sorted(tier, key=breaker.index))
            else:
                broken.extend(tier)
        return broken

    def __repr__(self) -> str:
        return f'Tie({sorted_items(self)!r})'


def make_tier(candidates: Any) -> FrozenSet[Candidate]:
    candidates = frozenset(candidates)
    return Tie(candidates) if len(candidates) > 1 else candidates


def select_winners(ranking: Tuple[FrozenSet[Candidate], ...],
                   seats: int,
                   ) -> FrozenSet[Candidate]:
    '''Take whole tiers from the top of the ranking until seats are filled.

    A tie across the last seat is not broken, so more candidates than seats
    may be returned; see :attr:`Result.overflow`.
    '''
    winners = set()
    for tier in ranking:
        if len(winners) >= seats:
            break
        winners.update(tier)
    return frozenset(winners)


def rank_by_totals(totals: Mapping[Candidate, Weight],
                   candidates: Tuple[Candidate, ...],
                   backend: WeightBackend,
                   ) -> Tuple[FrozenSet[Candidate], ...]:
    '''Rank candidates in descending order of their totals.

    Candidates with equal totals (as compared by the backend) share a tier.

    :param totals: Totals of the candidates to rank.
    :param candidates: Declared candidates; only those present in totals are
        ranked.
    :param backend: Weight backend of the totals.
    '''
    ordered = sorted(
        (cand for cand in candidates if cand in totals),
        key=lambda cand: backend.sort_key(totals[cand]),
        reverse=True,
    )
    tiers = []
    current = []
    for cand in ordered:
        if current and backend.compare(totals[current[0]], totals[cand]) != 0:
            tiers.append(make_tier(current))
            current = []
        current.append(cand)
    if current:
        tiers.append(make_tier(current))
    return tuple(tiers)


def _serialize_totals(totals: Optional[Mapping[Candidate, Weight]]) -> Any:
    if totals is None:
        return None
    return [
        [serialize_value(cand), serialize_value(total)]
        for cand, total in totals.items()
    ]


def _serialize_ranking(ranking: Tuple[FrozenSet[Candidate], ...]
                       ) -> List[List[Any]]:
    return [
        [serialize_value(cand) for cand in sorted_items(tier)]
        for tier in ranking
    ]


def _serialize_rejections(rejected: Tuple[Any, ...]) -> List[Dict[str, Any]]:
    return [
        {
            'index': rej.index,
            'vote': serialize_value(rej.vote),
            'reason': rej.error.reason,
        }
        for rej in rejected
    ]


def _readonly(mapping: Optional[Mapping]) -> Optional[Mapping]:
    if mapping is None or isinstance(mapping, MappingProxyType):
        return mapping
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class Result:
    '''The outcome of a single-pass tally.

    :param method: Name of the counting method.
    :param winners: The winning candidates: the top tiers filling the
        seats, more than the seats if a tie crosses the last one, none if the
        method admits no winner (a Condorcet cycle).
    :param ranking: Tiers of candidates, best first.
    :param totals: Final totals per candidate, in declared order, for the
        methods that produce them.
    :param rejected: Records of ballots rejected on ingestion.
    :param details: Method-specific intermediate data, such as the pairwise
        matrix or the strongest path strengths.
    :param seats: Number of winners requested.
    '''
    method: str
    winners: FrozenSet[Candidate]
    ranking: Tuple[FrozenSet[Candidate], ...]
    totals: Optional[Mapping[Candidate, Weight]] = None
    rejected: Tuple[Any, ...] = ()
    details: Mapping[str, Any] = field(
        default_factory=lambda: MappingProxyType({})
    )
    seats: int = 1

    def __post_init__(self):
        object.__setattr__(self, 'winners', frozenset(self.winners))
        object.__setattr__(self, 'totals', _readonly(self.totals))
        object.__setattr__(self, 'details', _readonly(self.details))

    @property
    def winner(self) -> Optional[Candidate]:
        '''The sole winner, or None if there is none or the top is tied.'''
        if len(self.winners) == 1:
            return next(iter(self.winners))
        return None

    @property
    def is_tied(self) -> bool:
        '''Whether several candidates share the top tier.'''
        return bool(self.ranking) and len(self.ranking[0]) > 1

    @property
    def overflow(self) -> FrozenSet[Candidate]:
        '''Candidates tied across the last seat, if the winners overflow.

        Empty unless there are more winners than seats requested; then these
        are the lowest ranked winners, all sharing one tier.
        '''
        if len(self.winners) <= self.seats:
            return frozenset()
        for tier in reversed(self.ranking):
            if tier & self.winners:
                return frozenset(tier)
        return frozenset()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'method': self.method,
            'seats': self.seats,
            'winners': [serialize_value(c) for c in sorted_items(self.winners)],
            'overflow': [
                serialize_value(c) for c in sorted_items(self.overflow)
            ],
            'ranking': _serialize_ranking(self.ranking),
            'totals': _serialize_totals(self.totals),
            'rejected': _serialize_rejections(self.rejected),
            'details': {
                key: serialize_value(val) for key, val in self.details.items()
            },
        }


class Action(str, enum.Enum):
    '''What an STV round did.'''
    ELECT = 'elect'
    ELIMINATE = 'eliminate'
    ELECT_REMAINING = 'elect_remaining'


@dataclass(frozen=True)
class RoundSnapshot:
    '''The state of an STV count in one of its rounds.

    :param number: Round number, from 1.
    :param action: What the round did.
    :param candidates: The candidates elected or eliminated.
    :param totals: Totals of the continuing candidates as counted at the
        start of the round.
    :param retained: Values retained by the candidates elected before the
        round.
    :param exhausted: Weight of the ballots exhausted before the round.
    :param lost: Rounding loss of the transfers made before the round.
    :param transferred: Weight passed on to continuing candidates by the
        round's action.
    :param newly_exhausted: Weight exhausted by the round's action.
    :param transfer_value: The ``(surplus, total)`` ratio by which an elected
        candidate's ballots were transferred; None for eliminations.
    :param tie_broken: Whether a tie-break decided the round's action.
    '''
    number: int
    action: Action
    candidates: Tuple[Candidate, ...]
    totals: Mapping[Candidate, Weight]
    retained: Mapping[Candidate, Weight]
    exhausted: Weight
    lost: Weight
    transferred: Weight
    newly_exhausted: Weight
    transfer_value: Optional[Tuple[Weight, Weight]] = None
    tie_broken: bool = False

    def __post_init__(self):
        object.__setattr__(self, 'totals', _readonly(self.totals))
        object.__setattr__(self, 'retained', _readonly(self.retained))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'number': self.number,
            'action': self.action.value,
            'candidates': [serialize_value(c) for c in self.candidates],
            'totals': _serialize_totals(self.totals),
            'retained': _serialize_totals(self.retained),
            'exhausted': serialize_value(self.exhausted),
            'lost': serialize_value(self.lost),
            'transferred': serialize_value(self.transferred),
            'newly_exhausted': serialize_value(self.newly_exhausted),
            'transfer_value': serialize_value(self.transfer_value),
            'tie_broken': self.tie_broken,
        }


@dataclass(frozen=True)
class STVResult:
    '''The outcome of a Single Transferable Vote count.

    :param seats: Number of seats filled.
    :param quota: The quota used.
    :param elected: Elected candidates in order of election.
    :param ranking: Tiers of candidates: the elected ones in order of
        election, then those left continuing by their final totals, then the
        eliminated ones in reverse order of elimination.
    :param rounds: Snapshots of the count, one per round.
    :param total: Total weight of the valid ballots.
    :param exhausted: Weight of the ballots exhausted at the end.
    :param lost: Total rounding loss of the transfers.
    :param rejected: Records of ballots rejected on ingestion.
    '''
    seats: int
    quota: Weight
    elected: Tuple[Candidate, ...]
    ranking: Tuple[FrozenSet[Candidate], ...]
    rounds: Tuple[RoundSnapshot, ...]
    total: Weight
    exhausted: Weight
    lost: Weight
    rejected: Tuple[Any, ...] = ()
    method: str = 'stv'

    @property
    def winners(self) -> FrozenSet[Candidate]:
        return frozenset(self.elected)

    @property
    def winner(self) -> Optional[Candidate]:
        return self.elected[0] if len(self.elected) == 1 else None

    @property
    def eliminated(self) -> Tuple[Candidate, ...]:
        '''Eliminated candidates in order of elimination.'''
        return tuple(
            cand
            for snapshot in self.rounds
            if snapshot.action == Action.ELIMINATE
            for cand in snapshot.candidates
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'method': self.method,
            'seats': self.seats,
            'quota': serialize_value(self.quota),
            'elected': [serialize_value(c) for c in self.elected],
            'ranking': _serialize_ranking(self.ranking),
            'rounds': [snapshot.to_dict() for snapshot in self.rounds],
            'total': serialize_value(self.total),
            'exhausted': serialize_value(self.exhausted),
            'lost': serialize_value(self.lost),
            'rejected': _serialize_rejections(self.rejected),
        }


def stv_ranking(candidates: Tuple[Candidate, ...],
                elected: Tuple[Candidate, ...],
                eliminated: Tuple[Candidate, ...],
                final_totals: Mapping[Candidate, Weight],
                backend: WeightBackend,
                ) -> Tuple[FrozenSet[Candidate], ...]:
    '''Derive the full ranking of an STV count.'''
    decided = set(elected) | set(eliminated)
    unelected = collections.OrderedDict(
        (cand, final_totals.get(cand, backend.zero()))
        for cand in candidates if cand not in decided
    )
    return (
        tuple(frozenset([cand]) for cand in elected)
        + rank_by_totals(unelected, candidates, backend)
        + tuple(frozenset([cand]) for cand in reversed(eliminated))
    )


AnyResult = Union[Result, STVResult]
