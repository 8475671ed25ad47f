'''Approval voting.

Each voter approves any number of candidates; the full weight of the ballot
counts for every one of them and the candidate approved by the greatest
weight wins.
'''

from votetally.ballot import ApprovalVoteValidator, VoteValidator
from votetally.convert import ApprovalToSimpleVotes, TotalsConverter
from votetally.evaluate.core import TotalsEvaluator
from votetally.persist import simple_serialization


@simple_serialization
class ApprovalVoting(TotalsEvaluator):
    '''Approval voting (AV) evaluator.

    Approval votes are aggregated by
    :class:`votetally.convert.ApprovalToSimpleVotes` and the candidates
    ranked by the totals.

    :param winners: Number of winners to select.
    '''
    name = 'approval'

    def validator(self) -> VoteValidator:
        return ApprovalVoteValidator()

    def converter(self) -> TotalsConverter:
        return ApprovalToSimpleVotes()
