"""Greedy one-to-one assignment of matched peaks.

Matched pairs are visited by descending weight and accepted if neither peak
was used before. This is an approximation of maximum-weight bipartite
matching and is kept as such: scores depend on the greedy order.

Equal weights are ordered by ascending query index, then ascending candidate
index, so results are reproducible across platforms and sort implementations.
"""

from typing import Tuple

import numpy as np
from numba import njit


@njit(cache=True)
def greedy_order(
    weight: np.ndarray,
    query_index: np.ndarray,
    candidate_index: np.ndarray,
) -> np.ndarray:
    """Visiting order: weight descending, then query index, then candidate index.

    Equivalent to a lexsort, built from three stable argsorts (least
    significant key first).
    """
    order = np.argsort(candidate_index, kind='mergesort')
    order = order[np.argsort(query_index[order], kind='mergesort')]
    order = order[np.argsort(-weight[order], kind='mergesort')]
    return order


@njit(cache=True)
def assign_peaks_greedy(
    weight: np.ndarray,
    query_index: np.ndarray,
    candidate_index: np.ndarray,
    n_query_peaks: int,
    n_candidate_peaks: int,
) -> Tuple[float, np.ndarray]:
    """Greedily assign peak pairs and sum their weights.

    Parameters
    ----------
    weight, query_index, candidate_index : np.ndarray
        Output of match_peaks_numba()
    n_query_peaks : int
        Number of peaks in the query spectrum
    n_candidate_peaks : int
        Number of peaks in the (original) candidate spectrum

    Returns
    -------
    score : float
        Sum of accepted weights
    peak_matches : np.ndarray (int64), shape (n_accepted, 2)
        Accepted (query_index, candidate_index) pairs in acceptance order
    """
    n_matches = len(weight)
    order = greedy_order(weight, query_index, candidate_index)

    query_used = np.zeros(n_query_peaks, dtype=np.bool_)
    candidate_used = np.zeros(n_candidate_peaks, dtype=np.bool_)
    accepted = np.empty((min(n_query_peaks, n_candidate_peaks, n_matches), 2), dtype=np.int64)

    score = 0.0
    n_accepted = 0
    for k in range(n_matches):
        m = order[k]
        q = query_index[m]
        c = candidate_index[m]
        if not query_used[q] and not candidate_used[c]:
            score += weight[m]
            accepted[n_accepted, 0] = q
            accepted[n_accepted, 1] = c
            n_accepted += 1
            query_used[q] = True
            candidate_used[c] = True

    return score, accepted[:n_accepted].copy()
