'''Converters from votes to per-candidate totals and pairwise counts.

These objects have a `convert()` method that accumulates a collection of
votes with their weights into per-candidate totals (for the Plurality,
Approval, Score and Borda methods) or into a pairwise preference matrix (for
the Condorcet methods). All arithmetic runs through the weight backend of the
count.

The totals always cover every declared candidate, starting at zero, and are
ordered as the declared candidates. Accumulation can be split across worker
threads; see :func:`votetally.util.accumulate`.
'''

import itertools
from typing import Any, Dict, List, Mapping, Tuple

import votetally.util
from votetally.ballot import ApprovalVoteType, RankedVoteType, ScoreVoteType
from votetally.candidate import Candidate, positions
from votetally.component import rankscore
from votetally.errors import InvalidConfiguration
from votetally.pairwise import PairwiseMatrix
from votetally.persist import simple_serialization
from votetally.weight import Weight, WeightBackend


Totals = Dict[Candidate, Weight]
VoteItems = List[Tuple[Any, Weight]]


def _increment(counter: Dict[Any, Weight],
               key: Any,
               amount: Weight,
               backend: WeightBackend,
               ) -> None:
    if key in counter:
        counter[key] = backend.add(counter[key], amount)
    else:
        counter[key] = amount


class TotalsConverter:
    '''A base class for converters accumulating per-candidate totals.

    Subclasses implement :meth:`add_vote`, which adds a single weighted vote
    to the totals.
    '''
    def convert(self,
                votes: Mapping[Any, Weight],
                candidates: Tuple[Candidate, ...],
                backend: WeightBackend,
                workers: int = 1,
                ) -> Totals:
        '''Accumulate the votes to per-candidate totals.

        :param votes: Votes mapped to their weights.
        :param candidates: The declared candidates.
        :param backend: Weight backend of the count.
        :param workers: Number of worker threads to accumulate with.
        '''
        self.prepare(candidates, backend)

        def tally_chunk(items: VoteItems) -> Totals:
            totals = votetally.util.zero_totals(candidates, backend)
            for vote, weight in items:
                self.add_vote(totals, vote, weight, backend)
            return totals

        return votetally.util.accumulate(
            votes,
            tally_chunk,
            lambda t1, t2: votetally.util.sum_dicts(t1, t2, backend),
            backend,
            workers=workers,
        )

    def prepare(self,
                candidates: Tuple[Candidate, ...],
                backend: WeightBackend,
                ) -> None:
        pass

    def add_vote(self,
                 totals: Totals,
                 vote: Any,
                 weight: Weight,
                 backend: WeightBackend,
                 ) -> None:
        raise NotImplementedError


@simple_serialization
class SimpleVoteTotals(TotalsConverter):
    '''Add up simple votes: each ballot's weight goes to its candidate.'''
    def add_vote(self,
                 totals: Totals,
                 vote: Candidate,
                 weight: Weight,
                 backend: WeightBackend,
                 ) -> None:
        totals[vote] = backend.add(totals[vote], weight)


@simple_serialization
class ApprovalToSimpleVotes(TotalsConverter):
    '''Aggregate approval votes to simple votes.

    Each ballot's full weight goes to every candidate it approves, as in
    ordinary approval voting.
    '''
    def add_vote(self,
                 totals: Totals,
                 vote: ApprovalVoteType,
                 weight: Weight,
                 backend: WeightBackend,
                 ) -> None:
        for cand in vote:
            totals[cand] = backend.add(totals[cand], weight)


@simple_serialization
class ScoreToSimpleVotes(TotalsConverter):
    '''Aggregate score votes to simple votes by summing weighted scores.

    Each scored candidate gets the score multiplied by the ballot weight.
    Candidates not scored by a ballot get nothing from it, which is the same
    as scoring them zero.
    '''
    def add_vote(self,
                 totals: Totals,
                 vote: ScoreVoteType,
                 weight: Weight,
                 backend: WeightBackend,
                 ) -> None:
        one = backend.one()
        for cand, score in vote:
            totals[cand] = backend.add(
                totals[cand], backend.scale(score, weight, one)
            )


@simple_serialization
class RankedToPositionalVotes(TotalsConverter):
    '''Aggregate ranked votes to simple votes by scoring ranks.

    Useful for Borda count systems. Assigns points to each rank and then
    sums the points multiplied by the ballot weights.

    :param rank_scorer: A rank scorer that determines which points to assign
        to which rank through its `scores()` method.
        You can use any object that honors the interface of
        :class:`rankscore.RankScorer`, such as any of its subclasses.
    '''
    def __init__(self, rank_scorer: rankscore.RankScorer):
        self.rank_scorer = rank_scorer

    def prepare(self,
                candidates: Tuple[Candidate, ...],
                backend: WeightBackend,
                ) -> None:
        self.rank_scorer.check_backend(backend)
        self.rank_scorer.set_n_candidates(len(candidates))

    def convert(self,
                votes: Mapping[RankedVoteType, Weight],
                candidates: Tuple[Candidate, ...],
                backend: WeightBackend,
                workers: int = 1,
                ) -> Totals:
        self._rank_scores = {}
        return super().convert(votes, candidates, backend, workers=workers)

    def add_vote(self,
                 totals: Totals,
                 vote: RankedVoteType,
                 weight: Weight,
                 backend: WeightBackend,
                 ) -> None:
        n_ranks = len(vote)
        this_rank_scores = self._rank_scores.get(n_ranks)
        if this_rank_scores is None:
            this_rank_scores = self.rank_scorer.scores(n_ranks, backend)
            self._rank_scores[n_ranks] = this_rank_scores
        one = backend.one()
        for cand, points in zip(vote, this_rank_scores):
            totals[cand] = backend.add(
                totals[cand], backend.scale(points, weight, one)
            )


UNRANKED_POLICIES = ('bottom', 'ignore')


@simple_serialization
class RankedToPairwiseMatrix:
    '''Aggregate ranked votes to counts of pairwise wins.

    Basic component for Condorcet methods. For each ballot that ranks a pair
    of candidates in a given order, adds the ballot weight to the count of
    the first candidate over the second. Candidates sharing a rank add to
    the count of ties between them.

    :param unranked: What to do with candidates not ranked on a ballot.
        ``'bottom'`` ranks them below all ranked candidates (but does not
        count the pairs of unranked candidates); ``'ignore'`` assumes the
        voter has no preferences concerning them.
    '''
    def __init__(self, unranked: str = 'bottom'):
        if unranked not in UNRANKED_POLICIES:
            raise InvalidConfiguration(
                f'unknown unranked candidate policy: {unranked!r},'
                f' expected one of {", ".join(UNRANKED_POLICIES)}'
            )
        self.unranked = unranked

    def convert(self,
                votes: Mapping[RankedVoteType, Weight],
                candidates: Tuple[Candidate, ...],
                backend: WeightBackend,
                workers: int = 1,
                ) -> PairwiseMatrix:
        '''Convert ranked votes to a pairwise matrix.

        :param votes: Ranked votes mapped to their weights.
        :param candidates: The declared candidates.
        :param backend: Weight backend of the count.
        :param workers: Number of worker threads to accumulate with.
        '''
        index = positions(candidates)

        def tally_chunk(items: VoteItems) -> PairwiseMatrix:
            wins = {}
            ties = {}
            for ranking, weight in items:
                self._add_vote(wins, ties, ranking, weight,
                               candidates, index, backend)
            return PairwiseMatrix(candidates, backend, wins, ties)

        return votetally.util.accumulate(
            votes,
            tally_chunk,
            lambda m1, m2: m1.merge(m2),
            backend,
            workers=workers,
        )

    def _add_vote(self,
                  wins: Dict[Tuple[Candidate, Candidate], Weight],
                  ties: Dict[Tuple[Candidate, Candidate], Weight],
                  ranking: RankedVoteType,
                  weight: Weight,
                  candidates: Tuple[Candidate, ...],
                  index: Dict[Candidate, int],
                  backend: WeightBackend,
                  ) -> None:
        tiers = votetally.util.ranked_tiers(ranking)
        if self.unranked == 'bottom':
            ranked = set(itertools.chain.from_iterable(tiers))
            unranked = [cand for cand in candidates if cand not in ranked]
        else:
            unranked = []
        for i, upper_tier in enumerate(tiers):
            for a, b in itertools.combinations(upper_tier, 2):
                key = (a, b) if index[a] <= index[b] else (b, a)
                _increment(ties, key, weight, backend)
            for upper_cand in upper_tier:
                for lower_tier in tiers[i+1:]:
                    for lower_cand in lower_tier:
                        _increment(wins, (upper_cand, lower_cand),
                                   weight, backend)
                for unranked_cand in unranked:
                    _increment(wins, (upper_cand, unranked_cand),
                               weight, backend)
