"""Tolerance-window peak matching between a query and a candidate.

Both peak lists are sorted by m/z, so a single cursor into the candidate list
only ever moves forward: candidate peaks below ``query_mz - tolerance`` can
never match a later (heavier) query peak. Every candidate peak inside the
window of a query peak yields one weighted pair; the cursor itself stays put
during the window scan so neighbouring query peaks may share candidate peaks.

Complexity: O(Q + C) cursor movement plus O(M) for M emitted pairs.
"""

from typing import NamedTuple, Tuple

import numpy as np
from numba import njit


class PeakMatches(NamedTuple):
    """All tolerance-compatible peak pairs (unordered, may overlap).

    Attributes
    ----------
    weight : np.ndarray (float64)
        query intensity * candidate intensity
    query_index : np.ndarray (int64)
        Index into the query spectrum
    candidate_index : np.ndarray (int64)
        Index of the originating peak in the candidate spectrum
    """
    weight: np.ndarray
    query_index: np.ndarray
    candidate_index: np.ndarray


@njit(cache=True)
def charges_compatible(query_charge: int, candidate_charge: int) -> bool:
    """Whether a query peak may pair with a (possibly shifted) candidate peak.

    - Unshifted candidate peak (charge 0): always
    - Shifted peak with the same known charge as the query peak: yes
    - Query peak with unknown charge: yes, for any shift charge
    - Otherwise: no
    """
    if candidate_charge == 0:
        return True
    if query_charge != 0 and query_charge == candidate_charge:
        return True
    if query_charge == 0:
        return True
    return False


@njit(cache=True)
def match_peaks_numba(
    query_mz: np.ndarray,
    query_intensity: np.ndarray,
    query_charge: np.ndarray,
    candidate_mass: np.ndarray,
    candidate_intensity: np.ndarray,
    candidate_charge: np.ndarray,
    candidate_source_index: np.ndarray,
    fragment_mz_tolerance: float,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Find every charge-compatible peak pair within the fragment tolerance.

    Parameters
    ----------
    query_mz, query_intensity, query_charge : np.ndarray
        Query peaks (mz MUST be sorted ascending!)
    candidate_mass, candidate_intensity, candidate_charge, candidate_source_index : np.ndarray
        Working candidate peak list from expand_candidate_peaks_numba()
        (mass MUST be sorted ascending!)
    fragment_mz_tolerance : float
        Absolute m/z tolerance (inclusive)

    Returns
    -------
    weight, query_index, candidate_index : np.ndarray
        Matched pairs in query order; candidate_index refers to the
        originating candidate peak, not the working list position

    Notes
    -----
    Two passes over the same windows: the first counts, the second fills the
    preallocated outputs.
    """
    n_query = len(query_mz)
    n_candidate = len(candidate_mass)

    n_matches = 0
    cursor = 0
    for q in range(n_query):
        q_mz = query_mz[q]
        while cursor < n_candidate and candidate_mass[cursor] < q_mz - fragment_mz_tolerance:
            cursor += 1
        c = cursor
        while c < n_candidate and abs(q_mz - candidate_mass[c]) <= fragment_mz_tolerance:
            if charges_compatible(query_charge[q], candidate_charge[c]):
                n_matches += 1
            c += 1

    weight = np.empty(n_matches, dtype=np.float64)
    query_index = np.empty(n_matches, dtype=np.int64)
    candidate_index = np.empty(n_matches, dtype=np.int64)

    n_filled = 0
    cursor = 0
    for q in range(n_query):
        q_mz = query_mz[q]
        while cursor < n_candidate and candidate_mass[cursor] < q_mz - fragment_mz_tolerance:
            cursor += 1
        c = cursor
        while c < n_candidate and abs(q_mz - candidate_mass[c]) <= fragment_mz_tolerance:
            if charges_compatible(query_charge[q], candidate_charge[c]):
                weight[n_filled] = query_intensity[q] * candidate_intensity[c]
                query_index[n_filled] = q
                candidate_index[n_filled] = candidate_source_index[c]
                n_filled += 1
            c += 1

    return weight, query_index, candidate_index


def match_peaks(query, candidate_peaks, fragment_mz_tolerance: float) -> PeakMatches:
    """Match a query Spectrum against a CandidatePeaks working list."""
    return PeakMatches(*match_peaks_numba(
        query.mz,
        query.intensity,
        query.charge,
        candidate_peaks.mass,
        candidate_peaks.intensity,
        candidate_peaks.charge,
        candidate_peaks.source_index,
        fragment_mz_tolerance,
    ))
