'''Condorcet evaluators.

These evaluators work by examining pairwise orderings between candidates
(how much ballot weight prefers one candidate to another), accumulated from
ranked votes into a :class:`votetally.pairwise.PairwiseMatrix` by
:class:`votetally.convert.RankedToPairwiseMatrix`. Ranked votes for these
evaluators may rank several candidates equally.

Both methods in this module reliably select a Condorcet winner when there
is one in the input.
'''

import logging
from typing import Dict, FrozenSet, List, Tuple

import votetally.component.pairwin_scorer
from votetally.ballot import BallotBox, RankedVoteValidator, VoteValidator
from votetally.candidate import Candidate
from votetally.convert import RankedToPairwiseMatrix
from votetally.evaluate.core import Evaluator, check_nonempty, check_winners
from votetally.pairwise import PairwiseMatrix
from votetally.persist import simple_serialization
from votetally.result import Result, make_tier, select_winners
from votetally.weight import Weight, WeightBackend


logger = logging.getLogger(__name__)


def condorcet_winner(matrix: PairwiseMatrix) -> List[Candidate]:
    """Select the candidate that pairwise beats all others, if any.

    :param matrix: Counts of pairwise preferences.
    :returns: A list with the Condorcet winner, or an empty list if there is
        none.
    """
    for cand in matrix.candidates:
        if all(
            matrix.beats(cand, other)
            for other in matrix.candidates if other != cand
        ):
            return [cand]
    return []


def smith_tiers(matrix: PairwiseMatrix) -> Tuple[FrozenSet[Candidate], ...]:
    """Rank candidates by successive Smith sets.

    The Smith set is the smallest non-empty set of candidates that each
    pairwise beat every candidate outside it. Removing it and repeating gives
    the next tier, etc. Candidates in one tier reach each other through
    chains of "not beaten by" relations.

    :param matrix: Counts of pairwise preferences.
    """
    cands = matrix.candidates
    reach = {
        a: {b: (a == b or not matrix.beats(b, a)) for b in cands}
        for a in cands
    }
    for mid in cands:
        for a in cands:
            if reach[a][mid]:
                for b in cands:
                    if reach[mid][b]:
                        reach[a][b] = True
    groups: Dict[FrozenSet[Candidate], List[Candidate]] = {}
    for cand in cands:
        reached = frozenset(b for b in cands if reach[cand][b])
        groups.setdefault(reached, []).append(cand)
    return tuple(
        make_tier(members)
        for reached, members in sorted(
            groups.items(), key=lambda item: len(item[0]), reverse=True
        )
    )


@simple_serialization
class CondorcetWinner(Evaluator):
    """Condorcet winner evaluator.

    Elects a candidate that pairwise beats all other candidates, if there
    is one, or nobody otherwise. The candidates are ranked by successive
    Smith sets, so without a Condorcet winner the top tier holds the
    candidates of the top cycle.

    :param unranked: What to do with candidates not ranked on a ballot;
        see :class:`votetally.convert.RankedToPairwiseMatrix`.
    """
    name = 'condorcet'

    def __init__(self, unranked: str = 'bottom'):
        self.unranked = unranked
        self._converter = RankedToPairwiseMatrix(unranked)

    def validator(self) -> VoteValidator:
        return RankedVoteValidator(allow_shared_ranks=True)

    def evaluate(self,
                 ballots: BallotBox,
                 backend: WeightBackend,
                 workers: int = 1,
                 ) -> Result:
        """Select the Condorcet winner.

        :param ballots: Ranked votes, possibly with shared ranks.
        :param backend: Weight backend of the count.
        :param workers: Number of worker threads for the accumulation.
        """
        check_nonempty(ballots, backend)
        matrix = self._converter.convert(
            ballots.votes, ballots.candidates, backend, workers=workers
        )
        winners = condorcet_winner(matrix)
        if not winners:
            logger.info('no Condorcet winner')
        return Result(
            method=self.name,
            winners=winners,
            ranking=smith_tiers(matrix),
            rejected=ballots.rejected,
            details={'matrix': matrix},
        )


@simple_serialization
class Schulze(Evaluator):
    '''Schulze (beatpath) Condorcet evaluator.

    Also called Schwartz Sequential dropping or path voting. Finds paths
    between pairs of candidates in which each candidate pairwise beats the
    next and ranks the candidates by the strengths of the strongest such
    paths: A ranks above B if the strongest path from A to B is stronger
    than the one from B to A. Candidates are then grouped into tiers by how
    many others they rank above.

    :param pairwin_scoring: Name of the pairwise win scorer determining the
        strength of direct links (``'winning_votes'``, ``'margins'``,
        ``'ratio'`` or ``'losing_votes'``) or a custom scorer function; see
        :mod:`votetally.component.pairwin_scorer`.
    :param unranked: What to do with candidates not ranked on a ballot;
        see :class:`votetally.convert.RankedToPairwiseMatrix`.
    :param winners: Number of winners to take from the top tiers.
    '''
    name = 'schulze'

    def __init__(self,
                 pairwin_scoring: str = 'winning_votes',
                 unranked: str = 'bottom',
                 winners: int = 1,
                 ):
        self.winners = check_winners(winners)
        self.pairwin_scoring = pairwin_scoring
        self.unranked = unranked
        self._pairwin_scorer = votetally.component.pairwin_scorer.construct(
            pairwin_scoring
        )
        self._converter = RankedToPairwiseMatrix(unranked)

    def validator(self) -> VoteValidator:
        return RankedVoteValidator(allow_shared_ranks=True)

    def evaluate(self,
                 ballots: BallotBox,
                 backend: WeightBackend,
                 workers: int = 1,
                 ) -> Result:
        '''Rank candidates using the Schulze method.

        :param ballots: Ranked votes, possibly with shared ranks.
        :param backend: Weight backend of the count.
        :param workers: Number of worker threads for the accumulation.
        '''
        check_nonempty(ballots, backend)
        matrix = self._converter.convert(
            ballots.votes, ballots.candidates, backend, workers=workers
        )
        paths = self.widest_paths(
            self._pairwin_scorer(matrix), ballots.candidates, backend
        )
        n_beaten = {cand: 0 for cand in ballots.candidates}
        for a, b in matrix.pairs():
            if backend.compare(paths[a, b], paths[b, a]) > 0:
                n_beaten[a] += 1
        groups = {}
        for cand in ballots.candidates:
            groups.setdefault(n_beaten[cand], []).append(cand)
        ranking = tuple(
            make_tier(groups[count])
            for count in sorted(groups, reverse=True)
        )
        return Result(
            method=self.name,
            winners=select_winners(ranking, self.winners),
            ranking=ranking,
            rejected=ballots.rejected,
            details={'matrix': matrix, 'strongest_paths': paths},
            seats=self.winners,
        )

    @staticmethod
    def widest_paths(strengths: Dict[Tuple[Candidate, Candidate], Weight],
                     candidates: Tuple[Candidate, ...],
                     backend: WeightBackend,
                     ) -> Dict[Tuple[Candidate, Candidate], Weight]:
        '''Compute the strengths of the strongest paths between candidates.

        Only links stronger than their reverse are kept; the closure then
        runs with the intermediate candidate in the outermost loop.

        :param strengths: Link strengths for ordered pairs of candidates.
        :param candidates: The declared candidates.
        :param backend: Weight backend of the strengths.
        '''
        zero = backend.zero()
        compare = backend.compare
        paths = {}
        for a in candidates:
            for b in candidates:
                if a != b:
                    forward = strengths.get((a, b), zero)
                    backward = strengths.get((b, a), zero)
                    paths[a, b] = forward if compare(forward, backward) > 0 \
                        else zero
        for cand_mid in candidates:
            for cand1 in candidates:
                if cand1 == cand_mid:
                    continue
                for cand2 in candidates:
                    if cand2 in (cand1, cand_mid):
                        continue
                    via = paths[cand1, cand_mid]
                    if compare(paths[cand_mid, cand2], via) < 0:
                        via = paths[cand_mid, cand2]
                    if compare(via, paths[cand1, cand2]) > 0:
                        paths[cand1, cand2] = via
        return paths
