'''Vote types, vote validators and ballot ingestion.

The following vote types are recognized:

-   **Simple** votes - a voter votes for a single candidate. Represented by the
    candidate object itself.
-   **Approval** votes - a voter selects a number of candidates and votes for
    them equally. Represented by a frozen set of candidate objects.
-   **Ranked** votes - a voter ranks a number of candidates, most preferred
    first. Represented by a tuple of candidate objects or frozen sets of them
    (to account for possible tied rankings, where allowed).
-   **Score** votes - a voter assigns a numeric score to a number of
    candidates. Represented by a frozen set of ``(candidate, score)`` pairs.

A ballot collection is either a mapping of votes to their weights, as in
``{('A', 'B'): 10, ('B', 'A'): 7}``, or an iterable of votes (each of weight
one) and :class:`Ballot` objects. Ingestion converts convenient input forms
(lists, sets, dictionaries) into the canonical vote types above, checks the
votes with a validator, merges equal votes and produces a :class:`BallotBox`
to be passed to the evaluators.
'''

import abc
import logging
import numbers
import collections.abc
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Tuple, FrozenSet, Dict, Union, Optional, Iterable
from typing import Mapping

from votetally.candidate import Candidate
from votetally.errors import MalformedBallot
from votetally.persist import simple_serialization
from votetally.weight import Weight, WeightBackend


logger = logging.getLogger(__name__)

ApprovalVoteType = FrozenSet[Candidate]
RankedVoteType = Tuple[Union[Candidate, FrozenSet[Candidate]], ...]
ScoreVoteType = FrozenSet[Tuple[Candidate, Any]]


@dataclass(frozen=True)
class Ballot:
    '''A single ballot given with an explicit weight.

    :param vote: The vote in any accepted form.
    :param weight: Weight of the ballot; one if not given.
    '''
    vote: Any
    weight: Any = None


@dataclass(frozen=True)
class Rejection:
    '''A record of a ballot rejected on ingestion.'''
    index: int
    vote: Any
    error: MalformedBallot


@dataclass(frozen=True)
class BallotBox:
    '''Valid ballots ready for tallying.

    :param votes: A read-only mapping of canonical votes to their total
        weights.
    :param candidates: The declared candidates, in declared order.
    :param total: Total weight of the valid ballots.
    :param rejected: Records of the ballots rejected as malformed.
    '''
    votes: Mapping[Any, Weight]
    candidates: Tuple[Candidate, ...]
    total: Weight
    rejected: Tuple[Rejection, ...] = ()

    def __len__(self) -> int:
        return len(self.votes)


def _is_collection(value: Any) -> bool:
    return (
        isinstance(value, collections.abc.Iterable)
        and not isinstance(value, (str, bytes))
    )


class VoteValidator(metaclass=abc.ABCMeta):
    '''Convert a single vote to its canonical type and check it.

    Base class, not intended for direct use.
    '''
    @abc.abstractmethod
    def normalize(self,
                  vote: Any,
                  candidates: Tuple[Candidate, ...],
                  backend: WeightBackend,
                  ) -> Any:
        '''Return the canonical form of a valid vote.

        :param vote: The vote as given by the caller.
        :param candidates: The declared candidates.
        :param backend: Weight backend used to coerce numeric contents.
        :raises MalformedBallot: If the vote is not well-formed.
        '''
        raise NotImplementedError

    @staticmethod
    def check_declared(vote: Any,
                       items: Iterable[Any],
                       candidates: Tuple[Candidate, ...],
                       ) -> None:
        for item in items:
            try:
                declared = item in candidates
            except TypeError:
                declared = False
            if not declared:
                raise MalformedBallot(vote, f'undeclared candidate {item!r}')


@simple_serialization
class SimpleVoteValidator(VoteValidator):
    '''Validate a simple vote (voting directly for a single candidate).'''
    def normalize(self,
                  vote: Any,
                  candidates: Tuple[Candidate, ...],
                  backend: WeightBackend,
                  ) -> Candidate:
        if not isinstance(vote, Candidate):
            raise MalformedBallot(vote, 'a single candidate expected')
        self.check_declared(vote, [vote], candidates)
        return vote


@simple_serialization
class ApprovalVoteValidator(VoteValidator):
    '''Validate an approval vote (voting for a number of candidates equally).

    Lists are accepted as long as no candidate is repeated.
    '''
    def normalize(self,
                  vote: Any,
                  candidates: Tuple[Candidate, ...],
                  backend: WeightBackend,
                  ) -> ApprovalVoteType:
        if not _is_collection(vote) or isinstance(vote, tuple):
            raise MalformedBallot(vote, 'a set of candidates expected')
        items = list(vote)
        if not items:
            raise MalformedBallot(vote, 'no candidate approved')
        self.check_declared(vote, items, candidates)
        approved = frozenset(items)
        if len(approved) < len(items):
            raise MalformedBallot(vote, 'candidate approved more than once')
        return approved


@simple_serialization
class RankedVoteValidator(VoteValidator):
    '''Validate a ranked vote (ranking of a number of candidates).

    The canonical vote is a tuple. A tier of candidates sharing a rank is
    given as a set; singleton tiers are unpacked to the candidate itself so
    that equivalent votes merge.

    :param allow_shared_ranks: Whether several candidates may share a rank.
        Pairwise methods allow this; sequential and positional ones do not.
    '''
    def __init__(self, allow_shared_ranks: bool = False):
        self.allow_shared_ranks = allow_shared_ranks

    def normalize(self,
                  vote: Any,
                  candidates: Tuple[Candidate, ...],
                  backend: WeightBackend,
                  ) -> RankedVoteType:
        if not isinstance(vote, (tuple, list)):
            raise MalformedBallot(vote, 'a ranking sequence expected')
        if not vote:
            raise MalformedBallot(vote, 'no candidate ranked')
        ranking = []
        seen = set()
        for item in vote:
            if _is_collection(item):
                tier = list(item)
                if not tier:
                    raise MalformedBallot(vote, 'empty rank')
                if len(tier) > 1 and not self.allow_shared_ranks:
                    raise MalformedBallot(vote, 'shared ranks not allowed')
            else:
                tier = [item]
            self.check_declared(vote, tier, candidates)
            for cand in tier:
                if cand in seen:
                    raise MalformedBallot(
                        vote, f'candidate {cand!r} ranked more than once'
                    )
                seen.add(cand)
            ranking.append(tier[0] if len(tier) == 1 else frozenset(tier))
        return tuple(ranking)


@simple_serialization
class ScoreVoteValidator(VoteValidator):
    '''Validate a score vote.

    Dictionaries mapping candidates to scores are accepted. Scores are
    coerced into the weight domain of the tally.

    :param score_range: A tuple with the inclusive lower and upper bounds of
        allowed scores. None means scores are not checked.
    '''
    def __init__(self, score_range: Optional[Tuple[Any, Any]] = None):
        if score_range is not None:
            score_range = tuple(score_range)
        self.score_range = score_range

    def normalize(self,
                  vote: Any,
                  candidates: Tuple[Candidate, ...],
                  backend: WeightBackend,
                  ) -> ScoreVoteType:
        if hasattr(vote, 'items'):
            pairs = list(vote.items())
        elif isinstance(vote, (frozenset, set, list)):
            pairs = list(vote)
        else:
            raise MalformedBallot(vote, 'candidate scores expected')
        if not pairs:
            raise MalformedBallot(vote, 'no candidate scored')
        scored = {}
        for pair in pairs:
            if not isinstance(pair, tuple) or len(pair) != 2:
                raise MalformedBallot(vote, f'invalid scoring {pair!r}')
            cand, score = pair
            self.check_declared(vote, [cand], candidates)
            if cand in scored:
                raise MalformedBallot(
                    vote, f'candidate {cand!r} scored more than once'
                )
            if (not isinstance(score, numbers.Number)
                    or isinstance(score, bool)):
                raise MalformedBallot(vote, f'non-numeric score {score!r}')
            scored[cand] = self._check_range(vote, backend.coerce(score),
                                             backend)
        return frozenset(scored.items())

    def _check_range(self, vote: Any, score: Weight,
                     backend: WeightBackend) -> Weight:
        if self.score_range is not None:
            low, high = self.score_range
            if ((low is not None
                    and backend.compare(score, backend.coerce(low)) < 0)
                    or (high is not None
                        and backend.compare(score, backend.coerce(high)) > 0)):
                raise MalformedBallot(
                    vote, f'score {score} out of range {self.score_range}'
                )
        return score


def _raw_ballots(ballots: Any) -> Iterable[Tuple[Any, Any]]:
    if hasattr(ballots, 'items') and hasattr(ballots, 'keys'):
        yield from ballots.items()
    else:
        for item in ballots:
            if isinstance(item, Ballot):
                yield item.vote, item.weight
            else:
                yield item, None


def ingest(ballots: Union[Mapping[Any, Any], Iterable[Any]],
           candidates: Tuple[Candidate, ...],
           validator: VoteValidator,
           backend: WeightBackend,
           strict: bool = False,
           ) -> BallotBox:
    '''Validate and merge a ballot collection.

    :param ballots: A mapping of votes to weights, or an iterable of votes
        and :class:`Ballot` objects.
    :param candidates: The declared candidates.
    :param validator: The validator for the vote type of the method.
    :param backend: Weight backend used to coerce weights and merge votes.
    :param strict: If True, raise on the first malformed ballot instead of
        recording it and going on.
    :raises MalformedBallot: In strict mode, for the first malformed ballot.
    '''
    votes: Dict[Any, Weight] = {}
    rejected = []
    for index, (raw_vote, raw_weight) in enumerate(_raw_ballots(ballots)):
        try:
            if raw_weight is None:
                weight = backend.one()
            else:
                weight = backend.coerce(raw_weight)
                if backend.compare(weight, backend.zero()) < 0:
                    raise MalformedBallot(
                        raw_vote, f'negative weight {raw_weight}'
                    )
            vote = validator.normalize(raw_vote, candidates, backend)
        except MalformedBallot as err:
            located = MalformedBallot(err.vote, err.reason, index=index)
            if strict:
                raise located from None
            rejected.append(Rejection(index, raw_vote, located))
            continue
        if vote in votes:
            votes[vote] = backend.add(votes[vote], weight)
        else:
            votes[vote] = weight
    if rejected:
        logger.warning('%d malformed ballots rejected', len(rejected))
    return BallotBox(
        votes=MappingProxyType(votes),
        candidates=candidates,
        total=backend.sum(votes.values()),
        rejected=tuple(rejected),
    )
