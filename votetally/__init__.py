"""Votetally - a library for tallying election ballots.

Votetally counts ballots under the commonly used single-winner and
multi-winner methods with exact, reproducible arithmetic.

A tally goes through the following steps:

-   The candidates are declared (see the ``candidate`` module); their order
    is the stable order used for reporting and for breaking idle ties.
-   The ballots are validated for the vote type of the method and merged
    into a ballot box; malformed ballots are rejected with their reasons
    (see the ``ballot`` module).
-   The evaluator from the ``evaluate`` subpackage determines the winners,
    either in a single pass over the ballots or in rounds of the single
    transferable vote.

All ballot weights and totals are handled by a weight backend from the
``weight`` module, which decides whether the arithmetic is exact (integers,
fractions, fixed-point decimals) or approximate (floats).

The :func:`tally` and :func:`tally_stv` functions from the ``system`` module
wrap all of this into a single call.
"""

from votetally.ballot import Ballot, BallotBox    # noqa
from votetally.errors import (    # noqa
    TallyError, MalformedBallot, EmptyElectorate, TieUnresolved,
    ArithmeticContractViolation, InvalidConfiguration,
)
from votetally.result import Result, STVResult, RoundSnapshot, Tie    # noqa
from votetally.system import tally, tally_stv, get_system    # noqa
from votetally.weight import (    # noqa
    WeightBackend, IntegerBackend, FloatBackend, FractionBackend,
    FixedPointBackend,
)
