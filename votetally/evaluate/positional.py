'''Positional (Borda count) evaluation of ranked votes.

Each rank on a ballot is assigned points by a rank scorer from
:mod:`votetally.component.rankscore`; the points multiplied by the ballot
weight are summed per candidate and the candidate with the most points wins.
The variants differ in how they assign points:

======================  ====================================================
``classic``             ``N - 1 - rank + base`` (N declared candidates)
``dowdall``             ``1 / (rank + 1)``
``modified``            ``(n - 1 - rank) * (N - 1) / (n - 1)`` (n ranked)
``truncated``           ``n - 1 - rank + base``
======================  ====================================================

Shared ranks are not allowed on Borda ballots.
'''

from typing import Any, Mapping

from votetally.ballot import RankedVoteValidator, VoteValidator
from votetally.component import rankscore
from votetally.convert import RankedToPositionalVotes, TotalsConverter
from votetally.evaluate.core import TotalsEvaluator
from votetally.persist import simple_serialization


@simple_serialization
class Borda(TotalsEvaluator):
    '''Borda count evaluator.

    :param variant: Name of the rank scoring variant, one of
        ``'classic'``, ``'dowdall'``, ``'modified'`` and ``'truncated'``.
    :param base: Points for the last rank, for the classic and truncated
        variants.
    :param winners: Number of winners to select.
    :raises InvalidConfiguration: If the variant is unknown.
    '''
    name = 'borda'

    def __init__(self,
                 variant: str = 'classic',
                 base: int = 0,
                 winners: int = 1,
                 ):
        super().__init__(winners)
        self.variant = variant
        self.base = base
        # fail early on an unknown variant
        rankscore.construct(variant, base)

    def validator(self) -> VoteValidator:
        return RankedVoteValidator(allow_shared_ranks=False)

    def converter(self) -> TotalsConverter:
        return RankedToPositionalVotes(
            rankscore.construct(self.variant, self.base)
        )

    def details(self) -> Mapping[str, Any]:
        return {'variant': self.variant, 'base': self.base}
