'''Evaluate the results of the elections.

Every evaluator takes a :class:`votetally.ballot.BallotBox` of validated
ballots and a weight backend and returns a result object. The evaluators
come in two kinds:

*Single-pass evaluators* (plurality, approval, score, Borda) accumulate
per-candidate totals from the ballots and rank the candidates by them;
Condorcet evaluators accumulate a pairwise preference matrix instead. These
accept a number of worker threads for the accumulation and return
a :class:`votetally.result.Result`.

*Sequential evaluators* (single transferable vote and instant-runoff voting)
count the ballots in rounds, electing and eliminating candidates and
transferring ballot weight between them. They return
a :class:`votetally.result.STVResult` with the record of every round.

Every evaluator also supplies the vote validator for its ballot type, used
by :func:`votetally.ballot.ingest` before the evaluation.
'''

from votetally.evaluate.core import *    # noqa
