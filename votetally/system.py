'''Named voting systems and the tallying entry points.

:func:`tally` counts the single-pass methods (Plurality, Approval, Score,
Borda, Condorcet, Schulze) and instant-runoff voting; :func:`tally_stv` runs
a Single Transferable Vote count. Both take the declared candidates and the
ballots as given by the caller, ingest the ballots with the validator of the
method and evaluate them in the requested weight backend.

The available methods are assembled in the `METHODS` dictionary;
:func:`get_system` builds a configured :class:`VotingSystem` from it.
'''

import inspect
import logging
from typing import Any, Collection, Dict, Iterable, Mapping, Tuple, Union

import votetally.weight
import votetally.evaluate.approval
import votetally.evaluate.cardinal
import votetally.evaluate.condorcet
import votetally.evaluate.core
import votetally.evaluate.positional
import votetally.evaluate.sequential
from votetally.ballot import BallotBox, ingest
from votetally.candidate import Candidate, declare
from votetally.errors import InvalidConfiguration
from votetally.evaluate.core import Evaluator
from votetally.persist import simple_serialization
from votetally.result import AnyResult, STVResult
from votetally.weight import WeightBackend


logger = logging.getLogger(__name__)

Ballots = Union[Mapping[Any, Any], Iterable[Any]]


@simple_serialization
class VotingSystem:
    """A named voting system. Wraps an election evaluator.

    The system ingests the ballots with the validator of its evaluator and
    evaluates them.

    :param name: Name of the system.
    :param evaluator: Evaluator representing the system.
    """
    def __init__(self, name: str, evaluator: Evaluator):
        self.name = name
        self.evaluator = evaluator

    def ingest(self,
               candidates: Collection[Candidate],
               ballots: Ballots,
               backend: WeightBackend,
               strict: bool = False,
               ) -> BallotBox:
        """Validate the ballots for the system's vote type."""
        return ingest(
            ballots, declare(candidates), self.evaluator.validator(),
            backend, strict=strict,
        )

    def evaluate(self,
                 candidates: Collection[Candidate],
                 ballots: Ballots,
                 weight_backend: Any = 'fraction',
                 strict: bool = False,
                 **kwargs) -> AnyResult:
        """Return the evaluator's results of the system for the votes given.

        :param candidates: The declared candidates.
        :param ballots: The ballots; see :func:`votetally.ballot.ingest`.
        :param weight_backend: The weight backend or its name.
        :param strict: Whether to raise on the first malformed ballot.
        :param kwargs: Passed to the evaluator (``workers`` or ``seats``).
        """
        backend = votetally.weight.construct(weight_backend)
        logger.info('tallying %s in %s weights', self.name, backend.name)
        box = self.ingest(candidates, ballots, backend, strict=strict)
        return self.evaluator.evaluate(box, backend, **kwargs)


METHODS: Dict[str, Tuple[str, type]] = {
    'plurality': ('Plurality', votetally.evaluate.core.Plurality),
    'approval': ('Approval', votetally.evaluate.approval.ApprovalVoting),
    'score': ('Score', votetally.evaluate.cardinal.ScoreVoting),
    'borda': ('Borda', votetally.evaluate.positional.Borda),
    'condorcet': ('Condorcet', votetally.evaluate.condorcet.CondorcetWinner),
    'schulze': ('Schulze', votetally.evaluate.condorcet.Schulze),
    'irv': ('Instant-Runoff', votetally.evaluate.sequential.InstantRunoff),
    'stv': (
        'Single Transferable Vote',
        votetally.evaluate.sequential.TransferableVoteSelector
    ),
}

SEQUENTIAL_METHODS = ('irv', 'stv')


def method_options(method: str) -> Tuple[str, ...]:
    '''Return the names of the options a method accepts.'''
    evaluator_cls = _get_method(method)[1]
    return tuple(
        name
        for name, param in inspect.signature(
            evaluator_cls.__init__
        ).parameters.items()
        if name != 'self' and param.kind not in (
            param.VAR_POSITIONAL, param.VAR_KEYWORD
        )
    )


def _get_method(method: str) -> Tuple[str, type]:
    try:
        return METHODS[method]
    except (KeyError, TypeError):
        raise InvalidConfiguration(
            f'unknown method: {method!r}, expected one of'
            f' {", ".join(METHODS)}'
        )


def get_system(method: str, **options) -> VotingSystem:
    '''Build a voting system for a method.

    :param method: Name of the method from `METHODS`.
    :param options: Options of the method's evaluator, such as ``variant``
        for Borda or ``pairwin_scoring`` for Schulze.
    :raises InvalidConfiguration: If the method or an option is unknown.
    '''
    name, evaluator_cls = _get_method(method)
    accepted = method_options(method)
    unknown = [opt for opt in options if opt not in accepted]
    if unknown:
        raise InvalidConfiguration(
            f'unknown options for {method}: {", ".join(unknown)}'
            + (f' (accepted: {", ".join(accepted)})' if accepted else '')
        )
    return VotingSystem(name, evaluator_cls(**options))


def tally(method: str,
          candidates: Collection[Candidate],
          ballots: Ballots,
          weight_backend: Any = 'fraction',
          strict: bool = False,
          workers: int = 1,
          **options) -> AnyResult:
    '''Tally ballots under a single-pass method or instant-runoff.

    :param method: One of ``'plurality'``, ``'approval'``, ``'score'``,
        ``'borda'``, ``'condorcet'``, ``'schulze'`` and ``'irv'``.
    :param candidates: The declared candidates. A sequence keeps its order;
        a set is sorted.
    :param ballots: A mapping of votes to weights, or an iterable of votes
        and :class:`votetally.ballot.Ballot` objects.
    :param weight_backend: The weight backend or its name from
        :data:`votetally.weight.BACKENDS`.
    :param strict: Whether to raise on the first malformed ballot instead of
        rejecting it and going on.
    :param workers: Number of worker threads for the accumulation of
        single-pass methods.
    :param options: Method options: ``variant`` and ``base`` for Borda,
        ``score_range`` for Score, ``unranked`` for Condorcet and Schulze,
        ``pairwin_scoring`` for Schulze, ``tie_break`` for instant-runoff,
        and ``winners``, the number of winners, for all single-pass methods
        but Condorcet.
    :returns: A :class:`votetally.result.Result`, or a
        :class:`votetally.result.STVResult` for instant-runoff.
    :raises InvalidConfiguration: If the method, an option, the backend or
        the candidates are invalid.
    :raises EmptyElectorate: If no valid ballots are given.
    '''
    if method == 'stv':
        raise InvalidConfiguration('use tally_stv() for STV counts')
    if not isinstance(workers, int) or workers < 1:
        raise InvalidConfiguration(f'invalid number of workers: {workers!r}')
    system = get_system(method, **options)
    if method in SEQUENTIAL_METHODS:
        return system.evaluate(candidates, ballots, weight_backend, strict)
    return system.evaluate(candidates, ballots, weight_backend, strict,
                           workers=workers)


def tally_stv(candidates: Collection[Candidate],
              ballots: Ballots,
              seats: int,
              quota: Any = 'droop',
              tie_break: Any = None,
              weight_backend: Any = 'fraction',
              strict: bool = False,
              accept_quota_equal: bool = True,
              ) -> STVResult:
    '''Run a Single Transferable Vote count.

    :param candidates: The declared candidates.
    :param ballots: Ranked ballots, without shared ranks.
    :param seats: Number of seats to fill.
    :param quota: Name of the quota (``'droop'``, ``'hare'``,
        ``'hagenbach_bischoff'`` or ``'imperiali'``) or a custom callable.
    :param tie_break: A tie-breaker, its name (``'first_appearance'`` or
        ``'previous_rounds'``) or a priority list of candidates. If None,
        a tie that decides the outcome raises
        :class:`votetally.errors.TieUnresolved`.
    :param weight_backend: The weight backend or its name.
    :param strict: Whether to raise on the first malformed ballot.
    :param accept_quota_equal: Whether reaching the quota exactly suffices
        for election.
    :raises InvalidConfiguration: If seats is less than one or another
        parameter is invalid.
    :raises EmptyElectorate: If no valid ballots are given.
    :raises TieUnresolved: If a tie decides the outcome and is not broken.
    '''
    system = get_system(
        'stv',
        quota=quota,
        tie_break=tie_break,
        accept_quota_equal=accept_quota_equal,
    )
    return system.evaluate(candidates, ballots, weight_backend, strict,
                           seats=seats)
