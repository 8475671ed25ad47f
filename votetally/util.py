'''Various utility functions for other modules of votetally.

There should normally be no need to use these functions directly.
'''

import logging
import functools
import collections.abc
import concurrent.futures
from typing import Any, Callable, Dict, Iterable, List, Mapping, Sequence
from typing import Tuple, TypeVar

from votetally.candidate import Candidate
from votetally.persist import sorted_items
from votetally.weight import Weight, WeightBackend


logger = logging.getLogger(__name__)

Partial = TypeVar('Partial')


def add_dict_to_dict(dict1: Dict[Any, Weight],
                     dict2: Mapping[Any, Weight],
                     backend: WeightBackend,
                     ) -> None:
    for key, addition in dict2.items():
        if key in dict1:
            dict1[key] = backend.add(dict1[key], addition)
        else:
            dict1[key] = addition


def sum_dicts(dict1: Mapping[Any, Weight],
              dict2: Mapping[Any, Weight],
              backend: WeightBackend,
              ) -> Dict[Any, Weight]:
    summed = dict(dict1)
    add_dict_to_dict(summed, dict2, backend)
    return summed


def zero_totals(candidates: Sequence[Candidate],
                backend: WeightBackend,
                ) -> Dict[Candidate, Weight]:
    '''Return a totals dictionary with all candidates at zero.'''
    return {cand: backend.zero() for cand in candidates}


def all_rankings(votes: Mapping[Tuple, Weight]
                 ) -> Iterable[Tuple[Candidate, int, Weight]]:
    '''Iterate over ranked votes rank by rank.

    First, the candidates at the first rank of every vote are yielded, in
    the order of the votes, then those at the second rank, etc. Candidates
    sharing a rank are yielded in sorted order.

    :param votes: Ranked votes.
    :returns: Triples of candidate, zero-based rank and vote weight.
    '''
    rank_i = 0
    while True:
        used = False
        for ranking, n_votes in votes.items():
            if len(ranking) > rank_i:
                used = True
                positioned = ranking[rank_i]
                if isinstance(positioned, collections.abc.Set):
                    for cand in sorted_items(positioned):
                        yield cand, rank_i, n_votes
                else:
                    yield positioned, rank_i, n_votes
        if used:
            rank_i += 1
        else:
            break


def all_ranked_candidates(votes: Mapping[Tuple, Weight]) -> List[Candidate]:
    '''Return a list of all candidates appearing in any of the rankings.

    Preserves the order of first appearance scanning the votes rank by rank.
    '''
    output = []
    seen = set()
    for cand, rank_i, n_votes in all_rankings(votes):
        if cand not in seen:
            seen.add(cand)
            output.append(cand)
    return output


def ranked_tiers(ranking: Tuple) -> List[Tuple[Candidate, ...]]:
    '''Return the ranks of a ranked vote as tuples of candidates.'''
    return [
        tuple(sorted_items(item))
        if isinstance(item, collections.abc.Set) else (item, )
        for item in ranking
    ]


def split_chunks(items: Sequence[Any], n_chunks: int) -> List[Sequence[Any]]:
    '''Split a sequence into at most n_chunks contiguous chunks.

    The chunk sizes differ by at most one; no chunk is empty.
    '''
    n_chunks = max(1, min(n_chunks, len(items)))
    size, extra = divmod(len(items), n_chunks)
    chunks = []
    start = 0
    for i in range(n_chunks):
        end = start + size + (1 if i < extra else 0)
        chunks.append(items[start:end])
        start = end
    return chunks


def accumulate(votes: Mapping[Any, Weight],
               tally_chunk: Callable[[List[Tuple[Any, Weight]]], Partial],
               merge: Callable[[Partial, Partial], Partial],
               backend: WeightBackend,
               workers: int = 1,
               ) -> Partial:
    '''Accumulate votes, optionally splitting them across worker threads.

    The votes are split into contiguous chunks, each tallied separately, and
    the partial results merged in chunk order, so the outcome is the same for
    any number of workers as long as the backend's addition is exact. With an
    inexact backend the votes are accumulated sequentially.

    :param votes: Votes to accumulate, with their weights.
    :param tally_chunk: A function to accumulate a list of vote-weight pairs
        into a partial result.
    :param merge: A function to merge two partial results.
    :param backend: Weight backend of the count.
    :param workers: Number of worker threads.
    '''
    items = list(votes.items())
    if workers > 1 and not backend.exact:
        logger.warning(
            '%s weights are not exactly associative,'
            ' accumulating sequentially instead of with %d workers',
            backend.name, workers
        )
        workers = 1
    if workers <= 1 or len(items) <= 1:
        return tally_chunk(items)
    chunks = split_chunks(items, workers)
    logger.debug('accumulating %d votes in %d chunks', len(items), len(chunks))
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as pool:
        partials = list(pool.map(tally_chunk, chunks))
    return functools.reduce(merge, partials)
