'''Quota functions used in transferable vote systems.

A quota function takes the total weight of valid votes, the number of seats
to fill and the weight backend of the count, and returns the weight a
candidate needs to reach to be elected. All arithmetic runs through the
backend so that the quota lives in the same domain as the vote totals.

All supported quota functions are assembled in the `QUOTAS` dictionary keyed
by their name. `get()` retrieves from this dictionary by string key;
`construct()` also accepts callables and passes them through.
'''

from typing import Callable

import votetally.component.core
from votetally.errors import InvalidConfiguration
from votetally.persist import simple_serialization
from votetally.weight import Weight, WeightBackend


QUOTAS = {}


quota_mark, get, construct = votetally.component.core.register_functions(
    QUOTAS, 'quota', Callable[[Weight, int, WeightBackend], Weight]
)


def _require_divisible(backend: WeightBackend, quota_name: str) -> None:
    if not backend.divisible:
        raise InvalidConfiguration(
            f'{quota_name} quota requires fractional weights, the'
            f' {backend.name} backend cannot represent them'
        )


@quota_mark
def droop(votes: Weight, seats: int, backend: WeightBackend) -> Weight:
    '''Droop quota, the most widely used one.

    The smallest whole quota guaranteeing that no more candidates can reach
    it than there are seats.
    '''
    return backend.add(
        backend.floor(backend.scale(votes, 1, seats + 1)),
        backend.one()
    )


@quota_mark
def hare(votes: Weight, seats: int, backend: WeightBackend) -> Weight:
    '''Hare quota, the most basic one.

    Exact with fractional weights, rounded down with integer ones.
    '''
    return backend.scale(votes, 1, seats)


@quota_mark
def hagenbach_bischoff(votes: Weight,
                       seats: int,
                       backend: WeightBackend,
                       ) -> Weight:
    '''Hagenbach-Bischoff quota, the unrounded Droop quota.

    Requires fractional weights. With this quota, elected candidates must
    exceed it, not just reach it, to avoid electing more candidates than
    seats; use it together with ``accept_quota_equal=False``.
    '''
    _require_divisible(backend, 'Hagenbach-Bischoff')
    return backend.scale(votes, 1, seats + 1)


@quota_mark
def imperiali(votes: Weight, seats: int, backend: WeightBackend) -> Weight:
    '''Imperiali quota.

    Imperiali quota can produce more candidates than seats to be filled in some
    cases. Requires fractional weights.
    '''
    _require_divisible(backend, 'Imperiali')
    return backend.scale(votes, 1, seats + 2)


@simple_serialization
class constant:
    '''A fixed quota regardless of the number of votes.

    :param quota: The quota value, coerced into the weight domain on use.
    '''
    def __init__(self, quota):
        self.quota = quota

    def __call__(self,
                 votes: Weight,
                 seats: int,
                 backend: WeightBackend,
                 ) -> Weight:
        return backend.coerce(self.quota)
