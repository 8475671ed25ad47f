"""Cardinal voting systems - systems that use score votes.

These systems have the most complicated input - each voter can assign a range
of scores to candidates - but are claimed to circumvent the Arrow's
impossibility theorem and Gibbard-Satterthwaite theorem (but not the more
general Gibbard's theorem) that only hold generally for ordinal (ranked) voting
systems.
"""

from typing import Any, Mapping, Optional, Tuple

from votetally.ballot import ScoreVoteValidator, VoteValidator
from votetally.convert import ScoreToSimpleVotes, TotalsConverter
from votetally.evaluate.core import TotalsEvaluator
from votetally.persist import simple_serialization


@simple_serialization
class ScoreVoting(TotalsEvaluator):
    """Evaluate ordinary score voting (range voting) systems.

    The scores given to each candidate, multiplied by the ballot weights, are
    summed by :class:`votetally.convert.ScoreToSimpleVotes` and the
    candidate with the highest sum wins. Unscored candidates score zero.

    :param score_range: A tuple with the inclusive lower and upper bounds of
        allowed scores. Ballots with scores outside the range are malformed.
        None means scores are not checked.
    :param winners: Number of winners to select.
    """
    name = 'score'

    def __init__(self,
                 score_range: Optional[Tuple[Any, Any]] = None,
                 winners: int = 1,
                 ):
        super().__init__(winners)
        if score_range is not None:
            score_range = tuple(score_range)
        self.score_range = score_range

    def validator(self) -> VoteValidator:
        return ScoreVoteValidator(score_range=self.score_range)

    def converter(self) -> TotalsConverter:
        return ScoreToSimpleVotes()

    def details(self) -> Mapping[str, Any]:
        if self.score_range is None:
            return {}
        return {'score_range': self.score_range}
