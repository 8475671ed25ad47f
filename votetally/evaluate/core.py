'''General evaluator machinery and the plurality evaluator.

An evaluator takes a :class:`votetally.ballot.BallotBox` of valid votes and
a weight backend and returns a :class:`votetally.result.Result`. Each
evaluator also provides the vote validator that ingestion should use for its
vote type.
'''

import abc
import logging
from typing import Any, Mapping

from votetally.ballot import BallotBox, SimpleVoteValidator, VoteValidator
from votetally.convert import SimpleVoteTotals, TotalsConverter
from votetally.errors import EmptyElectorate, InvalidConfiguration
from votetally.persist import simple_serialization
from votetally.result import Result, rank_by_totals, select_winners
from votetally.weight import WeightBackend


logger = logging.getLogger(__name__)


def check_nonempty(ballots: BallotBox, backend: WeightBackend) -> None:
    '''Check that there are valid votes to tally.

    Valid ballots that all carry zero weight count as none.

    :raises EmptyElectorate: If there are none.
    '''
    if not ballots.votes or backend.is_zero(ballots.total):
        raise EmptyElectorate(ballots.rejected)


def check_winners(winners: int) -> int:
    '''Check the number of winners requested from an evaluator.

    :raises InvalidConfiguration: If it is not a positive integer.
    '''
    if isinstance(winners, bool) or not isinstance(winners, int) \
            or winners < 1:
        raise InvalidConfiguration(f'invalid number of winners: {winners!r}')
    return winners


class Evaluator(metaclass=abc.ABCMeta):
    '''Evaluate votes for candidates.

    A root abstract base class for all evaluators.
    '''
    name: str = NotImplemented

    @abc.abstractmethod
    def validator(self) -> VoteValidator:
        '''Return the validator for the votes this evaluator accepts.'''
        raise NotImplementedError

    @abc.abstractmethod
    def evaluate(self,
                 ballots: BallotBox,
                 backend: WeightBackend,
                 workers: int = 1,
                 ) -> Result:
        '''Evaluate the votes.

        :param ballots: Valid votes with their weights.
        :param backend: Weight backend of the count.
        :param workers: Number of worker threads for the accumulation.
        :raises EmptyElectorate: If there are no valid votes.
        '''
        raise NotImplementedError


class TotalsEvaluator(Evaluator):
    '''An evaluator ranking candidates by accumulated per-candidate totals.

    The winners are taken from the top of the ranking by whole tiers until
    the requested number is reached; more if a tie crosses the last seat.

    :param winners: Number of winners to select.
    '''
    def __init__(self, winners: int = 1):
        self.winners = check_winners(winners)

    def converter(self) -> TotalsConverter:
        raise NotImplementedError

    def details(self) -> Mapping[str, Any]:
        return {}

    def evaluate(self,
                 ballots: BallotBox,
                 backend: WeightBackend,
                 workers: int = 1,
                 ) -> Result:
        check_nonempty(ballots, backend)
        totals = self.converter().convert(
            ballots.votes, ballots.candidates, backend, workers=workers
        )
        ranking = rank_by_totals(totals, ballots.candidates, backend)
        logger.debug('%s totals: %s', self.name, totals)
        return Result(
            method=self.name,
            winners=select_winners(ranking, self.winners),
            ranking=ranking,
            totals=totals,
            rejected=ballots.rejected,
            details=self.details(),
            seats=self.winners,
        )


@simple_serialization
class Plurality(TotalsEvaluator):
    '''Plurality voting evaluator.

    Each ballot's weight counts for its single candidate; the candidate with
    the greatest total wins. This is also known as first-past-the-post.

    :param winners: Number of winners to select.
    '''
    name = 'plurality'

    def validator(self) -> VoteValidator:
        return SimpleVoteValidator()

    def converter(self) -> TotalsConverter:
        return SimpleVoteTotals()
