'''Errors raised while ingesting ballots and tallying them.

Ballot errors (:class:`MalformedBallot`) are raised per ballot on ingestion
and are usually collected rather than propagated; see
:func:`votetally.ballot.ingest`. The other errors abort the tally run they
occur in. Since tallying is deterministic, running it again with the same
input reproduces the same error.
'''

from typing import Any, Collection, Optional


class TallyError(Exception):
    '''Base class for all errors reported by votetally.'''
    pass


class MalformedBallot(TallyError):
    '''A ballot is not structurally well-formed.

    :param vote: The offending vote.
    :param reason: Why the vote was rejected.
    :param index: Position of the ballot in the input collection, if known.
    '''
    def __init__(self, vote: Any, reason: str, index: Optional[int] = None):
        self.vote = vote
        self.reason = reason
        self.index = index
        message = f'malformed ballot {vote!r}: {reason}'
        if index is not None:
            message = f'ballot #{index}: ' + message
        super().__init__(message)


class EmptyElectorate(TallyError):
    '''No valid ballots were left to tally.

    :param rejected: Rejections of the ballots that were malformed, if any.
    '''
    def __init__(self, rejected: Collection[Any] = ()):
        self.rejected = tuple(rejected)
        message = 'no valid ballots to tally'
        if self.rejected:
            message += f' ({len(self.rejected)} rejected)'
        super().__init__(message)


class TieUnresolved(TallyError):
    '''A tie decides the outcome and no tie-break was given to resolve it.

    :param candidates: The tied candidates.
    :param action: What the tie blocked (e.g. ``'election'``).
    :param round_number: The count in which the tie arose, if applicable.
    '''
    def __init__(self,
                 candidates: Collection[Any],
                 action: str,
                 round_number: Optional[int] = None,
                 ):
        self.candidates = tuple(candidates)
        self.action = action
        self.round_number = round_number
        message = f'unresolved tie for {action} between {list(self.candidates)}'
        if round_number is not None:
            message += f' in round {round_number}'
        super().__init__(message)


class ArithmeticContractViolation(TallyError):
    '''A weight backend was used outside its arithmetic contract.

    This signals a bug in the caller or the backend, such as a division by
    zero, and is never recovered from.
    '''
    pass


class InvalidConfiguration(TallyError, ValueError):
    '''An unknown or inconsistent method, backend or option was requested.'''
    pass
