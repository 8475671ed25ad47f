'''Evaluators that operate sequentially on ranked votes.

This hosts the Single Transferable Vote evaluator
(:class:`TransferableVoteSelector`), its single-winner variant, instant-runoff
voting (:class:`InstantRunoff`), and :func:`replay`, which recomputes the
counts of a finished STV tally from its recorded actions for auditing.

The count proceeds in rounds. In each round, the ballots of every continuing
candidate are counted. If any total reaches the quota, the candidate with
the highest total is elected, retains the quota, and the surplus is
transferred: each ballot parcel of the candidate passes to its next
continuing preference at its value multiplied by ``surplus / total``
(the inclusive Gregory method). Otherwise, the candidate with the lowest
total is eliminated and their parcels pass on at full value. Parcels with no
continuing preference left are exhausted; value lost by rounding the
transfers is recorded as well. When no more candidates continue than there
are seats left, they are all elected at once.
'''

import copy
import enum
import logging
import collections
from typing import Any, Dict, List, Mapping, Optional, Tuple

import votetally.component.quota
import votetally.component.tiebreak
from votetally.ballot import BallotBox, RankedVoteType, RankedVoteValidator
from votetally.ballot import VoteValidator
from votetally.candidate import Candidate, positions
from votetally.component.tiebreak import TieBreaker
from votetally.errors import InvalidConfiguration, TieUnresolved
from votetally.evaluate.core import Evaluator, check_nonempty
from votetally.persist import simple_serialization
from votetally.result import Action, RoundSnapshot, STVResult, stv_ranking
from votetally.weight import Weight, WeightBackend


logger = logging.getLogger(__name__)

Parcel = collections.namedtuple('Parcel', ['vote', 'position', 'value'])
Totals = Dict[Candidate, Weight]


class Status(enum.Enum):
    CONTINUING = 'continuing'
    ELECTED = 'elected'
    ELIMINATED = 'eliminated'


class TallyState:
    '''The mutable state of a single STV count.

    Per-candidate data is kept in lists indexed by the candidate's declared
    position.

    :param candidates: The declared candidates.
    :param votes: Ranked votes with their weights.
    :param backend: Weight backend of the count.
    '''
    def __init__(self,
                 candidates: Tuple[Candidate, ...],
                 votes: Mapping[RankedVoteType, Weight],
                 backend: WeightBackend,
                 ):
        self.candidates = candidates
        self.backend = backend
        self.index = positions(candidates)
        self.status = [Status.CONTINUING] * len(candidates)
        self.piles: List[List[Parcel]] = [[] for cand in candidates]
        self.retained: Dict[Candidate, Weight] = {}
        self.exhausted = backend.zero()
        self.lost = backend.zero()
        for vote, weight in votes.items():
            self._place(Parcel(vote, -1, weight))

    def continuing(self) -> List[Candidate]:
        return [
            cand for cand, status in zip(self.candidates, self.status)
            if status is Status.CONTINUING
        ]

    def count(self) -> Totals:
        '''Count the totals of the continuing candidates.'''
        return {
            cand: self.backend.sum(parcel.value for parcel in self.piles[i])
            for i, cand in enumerate(self.candidates)
            if self.status[i] is Status.CONTINUING
        }

    def _place(self, parcel: Parcel) -> Optional[Candidate]:
        # Move the parcel to its next continuing preference, or exhaust it.
        vote = parcel.vote
        for pos in range(parcel.position + 1, len(vote)):
            cand_i = self.index[vote[pos]]
            if self.status[cand_i] is Status.CONTINUING:
                self.piles[cand_i].append(Parcel(vote, pos, parcel.value))
                return vote[pos]
        self.exhausted = self.backend.add(self.exhausted, parcel.value)
        return None

    def _transfer(self,
                  parcels: List[Parcel],
                  ) -> Tuple[Weight, Weight]:
        backend = self.backend
        transferred = backend.zero()
        newly_exhausted = backend.zero()
        flows = collections.OrderedDict()
        for parcel in parcels:
            receiver = self._place(parcel)
            if receiver is None:
                newly_exhausted = backend.add(newly_exhausted, parcel.value)
            else:
                transferred = backend.add(transferred, parcel.value)
                flows[receiver] = backend.add(
                    flows.get(receiver, backend.zero()), parcel.value
                )
        logger.debug('transfers: %s, exhausted: %s',
                     dict(flows), newly_exhausted)
        return transferred, newly_exhausted

    def elect(self,
              cand: Candidate,
              total: Weight,
              quota: Weight,
              ) -> Tuple[Weight, Weight, Tuple[Weight, Weight]]:
        '''Elect a candidate and transfer their surplus.

        :returns: The weight transferred to continuing candidates, the weight
            newly exhausted and the transfer ratio ``(surplus, total)``.
        '''
        backend = self.backend
        cand_i = self.index[cand]
        self.status[cand_i] = Status.ELECTED
        parcels, self.piles[cand_i] = self.piles[cand_i], []
        surplus = backend.subtract(total, quota)
        if not backend.is_positive(surplus):
            self.retained[cand] = total
            return backend.zero(), backend.zero(), (backend.zero(), total)
        self.retained[cand] = quota
        scaled = [
            Parcel(parcel.vote, parcel.position,
                   backend.scale(parcel.value, surplus, total))
            for parcel in parcels
        ]
        loss = backend.subtract(
            surplus, backend.sum(parcel.value for parcel in scaled)
        )
        self.lost = backend.add(self.lost, loss)
        logger.debug('transferring surplus %s of %s from %s, %s lost',
                     surplus, total, cand, loss)
        transferred, newly_exhausted = self._transfer(scaled)
        return transferred, newly_exhausted, (surplus, total)

    def eliminate(self, cand: Candidate) -> Tuple[Weight, Weight]:
        '''Eliminate a candidate and transfer their ballots at full value.

        :returns: The weight transferred to continuing candidates and the
            weight newly exhausted.
        '''
        cand_i = self.index[cand]
        self.status[cand_i] = Status.ELIMINATED
        parcels, self.piles[cand_i] = self.piles[cand_i], []
        return self._transfer(parcels)

    def elect_remaining(self, elected: List[Candidate], totals: Totals) -> None:
        for cand in elected:
            cand_i = self.index[cand]
            self.status[cand_i] = Status.ELECTED
            self.piles[cand_i] = []
            self.retained[cand] = totals[cand]


@simple_serialization
class TransferableVoteSelector(Evaluator):
    '''Select candidates by the Single Transferable Vote (STV).

    :param quota: The quota, as a name from
        :mod:`votetally.component.quota` or a callable taking the total
        weight of valid votes, the number of seats and the weight backend.
    :param tie_break: A tie-breaker from :mod:`votetally.component.tiebreak`,
        its name, or an explicit priority list of the candidates. If None, a
        tie that decides the outcome raises :class:`TieUnresolved`.
    :param accept_quota_equal: Whether a candidate reaching exactly the quota
        is elected. If False, the quota must be exceeded.
    '''
    name = 'stv'

    def __init__(self,
                 quota: Any = 'droop',
                 tie_break: Any = None,
                 accept_quota_equal: bool = True,
                 ):
        self.quota = quota
        self.tie_break = tie_break
        self.accept_quota_equal = accept_quota_equal
        self._quota_function = votetally.component.quota.construct(quota)
        self._tie_breaker = votetally.component.tiebreak.construct(tie_break)

    def validator(self) -> VoteValidator:
        return RankedVoteValidator(allow_shared_ranks=False)

    def evaluate(self,
                 ballots: BallotBox,
                 backend: WeightBackend,
                 seats: int = 1,
                 ) -> STVResult:
        '''Run the count.

        :param ballots: Ranked votes without shared ranks.
        :param backend: Weight backend of the count.
        :param seats: Number of candidates to elect.
        :raises InvalidConfiguration: If seats is less than one.
        :raises EmptyElectorate: If there are no valid votes.
        :raises TieUnresolved: If a tie decides the outcome and no
            tie-breaker resolves it.
        '''
        if not isinstance(seats, int) or seats < 1:
            raise InvalidConfiguration(f'invalid number of seats: {seats!r}')
        check_nonempty(ballots, backend)
        candidates = ballots.candidates
        # each count prepares its own copy of the tie-breaker
        tie_breaker = copy.deepcopy(self._tie_breaker)
        if tie_breaker is not None:
            tie_breaker.prepare(candidates, ballots.votes, backend)
        quota = self._quota_function(ballots.total, seats, backend)
        logger.info('quota computed at %s', quota)
        state = TallyState(candidates, ballots.votes, backend)
        elected = []
        eliminated = []
        rounds = []
        history = []
        while len(elected) < seats:
            number = len(rounds) + 1
            continuing = state.continuing()
            totals = state.count()
            history.append(totals)
            snapshot_base = dict(
                number=number,
                totals=totals,
                retained=dict(state.retained),
                exhausted=state.exhausted,
                lost=state.lost,
            )
            n_remaining = seats - len(elected)
            logger.info('round %d totals: %s', number, totals)
            if len(continuing) <= n_remaining:
                newly = self._order_remaining(continuing, totals, history,
                                              backend, tie_breaker)
                state.elect_remaining(newly, totals)
                elected.extend(newly)
                logger.info('round %d: electing remaining %s', number, newly)
                rounds.append(RoundSnapshot(
                    action=Action.ELECT_REMAINING,
                    candidates=tuple(newly),
                    transferred=backend.zero(),
                    newly_exhausted=backend.zero(),
                    **snapshot_base,
                ))
                break
            reached = [
                cand for cand in continuing
                if self._reaches(totals[cand], quota, backend)
            ]
            if reached:
                top = backend.max(totals[cand] for cand in reached)
                tied = [c for c in reached
                        if backend.compare(totals[c], top) == 0]
                cand, tie_broken = self._pick(tied, 'election', number,
                                              history, tie_breaker,
                                              last=False)
                transferred, newly_exhausted, ratio = state.elect(
                    cand, totals[cand], quota
                )
                elected.append(cand)
                logger.info('round %d: %s elected', number, cand)
                rounds.append(RoundSnapshot(
                    action=Action.ELECT,
                    candidates=(cand, ),
                    transferred=transferred,
                    newly_exhausted=newly_exhausted,
                    transfer_value=ratio,
                    tie_broken=tie_broken,
                    **snapshot_base,
                ))
            else:
                bottom = backend.min(totals[cand] for cand in continuing)
                tied = [c for c in continuing
                        if backend.compare(totals[c], bottom) == 0]
                if self._is_idle_tie(tied, bottom, continuing, n_remaining,
                                     backend):
                    cand, tie_broken = tied[-1], False
                else:
                    cand, tie_broken = self._pick(tied, 'elimination', number,
                                                  history, tie_breaker,
                                                  last=True)
                transferred, newly_exhausted = state.eliminate(cand)
                eliminated.append(cand)
                logger.info('round %d: %s eliminated', number, cand)
                rounds.append(RoundSnapshot(
                    action=Action.ELIMINATE,
                    candidates=(cand, ),
                    transferred=transferred,
                    newly_exhausted=newly_exhausted,
                    tie_broken=tie_broken,
                    **snapshot_base,
                ))
        final_totals = state.count()
        return STVResult(
            seats=seats,
            quota=quota,
            elected=tuple(elected),
            ranking=stv_ranking(candidates, tuple(elected), tuple(eliminated),
                                final_totals, backend),
            rounds=tuple(rounds),
            total=ballots.total,
            exhausted=state.exhausted,
            lost=state.lost,
            rejected=ballots.rejected,
            method=self.name,
        )

    def _reaches(self,
                 total: Weight,
                 quota: Weight,
                 backend: WeightBackend,
                 ) -> bool:
        comparison = backend.compare(total, quota)
        return comparison > 0 or (self.accept_quota_equal and comparison == 0)

    @staticmethod
    def _is_idle_tie(tied: List[Candidate],
                     bottom: Weight,
                     continuing: List[Candidate],
                     n_remaining: int,
                     backend: WeightBackend,
                     ) -> bool:
        # Candidates without any votes can all go without any effect on the
        # outcome if enough others continue, so the order does not matter.
        return (
            len(tied) > 1
            and backend.is_zero(bottom)
            and len(continuing) - len(tied) >= n_remaining
        )

    @staticmethod
    def _pick(tied: List[Candidate],
              action: str,
              number: int,
              history: List[Totals],
              tie_breaker: Optional[TieBreaker],
              last: bool,
              ) -> Tuple[Candidate, bool]:
        if len(tied) == 1:
            return tied[0], False
        if tie_breaker is None:
            raise TieUnresolved(tied, action, number)
        try:
            ranked = tie_breaker.rank(tied, history)
        except TieUnresolved as err:
            raise TieUnresolved(err.candidates, action, number) from err
        logger.info('round %d: tie for %s between %s broken as %s',
                    number, action, tied, ranked)
        return (ranked[-1] if last else ranked[0]), True

    @staticmethod
    def _order_remaining(continuing: List[Candidate],
                         totals: Totals,
                         history: List[Totals],
                         backend: WeightBackend,
                         tie_breaker: Optional[TieBreaker],
                         ) -> List[Candidate]:
        # By total; equal totals by the tie-breaker if there is one and it
        # can resolve them, else in declared order.
        ordered = sorted(
            continuing,
            key=lambda cand: backend.sort_key(totals[cand]),
            reverse=True,
        )
        result = []
        while ordered:
            group = [
                cand for cand in ordered
                if backend.compare(totals[cand], totals[ordered[0]]) == 0
            ]
            if len(group) > 1 and tie_breaker is not None:
                try:
                    group = tie_breaker.rank(group, history)
                except TieUnresolved:
                    logger.debug('order of %s left as declared', group)
            result.extend(group)
            ordered = [cand for cand in ordered if cand not in group]
        return result


@simple_serialization
class InstantRunoff(TransferableVoteSelector):
    '''Instant-runoff voting (IRV), the single-winner variant of STV.

    With a single seat, the Droop quota is a strict majority of the valid
    votes. The weakest candidates are eliminated one by one until somebody
    reaches it or only one candidate is left.

    :param tie_break: A tie-breaker; see :class:`TransferableVoteSelector`.
    '''
    name = 'irv'

    def __init__(self, tie_break: Any = None):
        super().__init__(quota='droop', tie_break=tie_break)

    def evaluate(self,
                 ballots: BallotBox,
                 backend: WeightBackend,
                 seats: int = 1,
                 ) -> STVResult:
        if seats != 1:
            raise InvalidConfiguration('instant-runoff fills a single seat')
        return super().evaluate(ballots, backend, seats=1)


def replay(ballots: BallotBox,
           result: STVResult,
           backend: WeightBackend,
           ) -> Tuple[Totals, ...]:
    '''Recompute the round totals of an STV count from its recorded actions.

    The recorded elections and eliminations are applied to the initial
    ballots in order, without deciding anything anew, so that an auditor can
    check each round's counts. With the same ballots and weight backend, the
    returned totals equal those recorded in the round snapshots.

    :param ballots: The ballots of the count.
    :param result: The result of the count.
    :param backend: Weight backend of the count.
    :returns: The totals of the continuing candidates at each round.
    '''
    state = TallyState(ballots.candidates, ballots.votes, backend)
    counts = []
    for snapshot in result.rounds:
        totals = state.count()
        counts.append(totals)
        if snapshot.action is Action.ELECT:
            for cand in snapshot.candidates:
                state.elect(cand, totals[cand], result.quota)
        elif snapshot.action is Action.ELIMINATE:
            for cand in snapshot.candidates:
                state.eliminate(cand)
        else:
            state.elect_remaining(list(snapshot.candidates), totals)
    return tuple(counts)
