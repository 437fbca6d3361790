"""Candidate peak expansion with precursor mass shifts.

When a query and a library spectrum differ in precursor m/z (e.g. because the
query carries an unexpected modification), fragments containing the
modification are offset by ``mass_diff / charge``. Expansion adds such
shifted copies of every library peak next to the unshifted originals, so a
single dot product covers both modified and unmodified fragment ions.

Shift policy
------------
- Peak with known charge z > 0: one shifted copy at ``mz - mass_diff / z``
- Peak with unknown charge: one copy per charge 1 .. precursor_charge - 1
- Shifted copies with m/z <= 0 are dropped
- Unshifted copies are tagged charge 0 so they can match any query peak
"""

from typing import NamedTuple, Tuple

import numpy as np
from numba import njit

from ..constants import MIN_SHIFT_CHARGE


class CandidatePeaks(NamedTuple):
    """Working peak list for one candidate (sorted by mass).

    Attributes
    ----------
    mass : np.ndarray (float64)
        Peak m/z, shifted where applicable
    intensity : np.ndarray (float64)
        Intensity of the originating peak
    charge : np.ndarray (int64)
        0 for unshifted peaks, otherwise the charge used for shifting
    source_index : np.ndarray (int64)
        Index of the originating peak in the candidate spectrum
    """
    mass: np.ndarray
    intensity: np.ndarray
    charge: np.ndarray
    source_index: np.ndarray


@njit(cache=True)
def shift_charge_range(peak_charge: int, precursor_charge: int) -> Tuple[int, int]:
    """Charges to shift a library peak with.

    Parameters
    ----------
    peak_charge : int
        Annotated fragment charge (0 = unknown)
    precursor_charge : int
        Precursor charge of the library spectrum

    Returns
    -------
    min_charge : int
        First charge (inclusive)
    max_charge : int
        Last charge (exclusive). Empty range if max_charge <= min_charge.

    Examples
    --------
    >>> shift_charge_range(2, 3)
    (2, 3)
    >>> shift_charge_range(0, 3)
    (1, 3)
    """
    if peak_charge > 0:
        return peak_charge, peak_charge + 1
    return MIN_SHIFT_CHARGE, precursor_charge


@njit(cache=True)
def precursor_mass_difference(
    query_precursor_mz: float,
    candidate_precursor_mz: float,
    candidate_precursor_charge: int,
) -> float:
    """Mass offset between query and candidate, scaled by the candidate charge."""
    return (query_precursor_mz - candidate_precursor_mz) * candidate_precursor_charge


@njit(cache=True)
def expand_candidate_peaks_numba(
    candidate_mz: np.ndarray,
    candidate_intensity: np.ndarray,
    candidate_charge: np.ndarray,
    candidate_precursor_mz: float,
    candidate_precursor_charge: int,
    query_precursor_mz: float,
    fragment_mz_tolerance: float,
    allow_shift: bool,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Build the (potentially shifted) working peak list of a candidate.

    Parameters
    ----------
    candidate_mz, candidate_intensity, candidate_charge : np.ndarray
        Candidate peaks (mz MUST be sorted ascending!)
    candidate_precursor_mz : float
    candidate_precursor_charge : int
    query_precursor_mz : float
    fragment_mz_tolerance : float
        Shifts are only generated if the mass difference exceeds this
    allow_shift : bool
        Whether to add shifted peaks at all

    Returns
    -------
    mass, intensity, charge, source_index : np.ndarray
        Working peak list, sorted by mass
    """
    n_peaks = len(candidate_mz)
    mass_diff = precursor_mass_difference(
        query_precursor_mz, candidate_precursor_mz, candidate_precursor_charge
    )
    do_shift = allow_shift and mass_diff > fragment_mz_tolerance

    # Count shifted peaks to allocate exactly once
    n_total = n_peaks
    if do_shift:
        for i in range(n_peaks):
            min_charge, max_charge = shift_charge_range(
                candidate_charge[i], candidate_precursor_charge
            )
            for charge in range(min_charge, max_charge):
                if candidate_mz[i] - mass_diff / charge > 0:
                    n_total += 1

    mass = np.empty(n_total, dtype=np.float64)
    intensity = np.empty(n_total, dtype=np.float64)
    charge_out = np.zeros(n_total, dtype=np.int64)
    source_index = np.empty(n_total, dtype=np.int64)

    # Unshifted peaks always match irrespective of their charge: charge 0
    for i in range(n_peaks):
        mass[i] = candidate_mz[i]
        intensity[i] = candidate_intensity[i]
        source_index[i] = i

    if n_total == n_peaks:
        return mass, intensity, charge_out, source_index

    n_filled = n_peaks
    for i in range(n_peaks):
        min_charge, max_charge = shift_charge_range(
            candidate_charge[i], candidate_precursor_charge
        )
        for charge in range(min_charge, max_charge):
            shifted_mz = candidate_mz[i] - mass_diff / charge
            if shifted_mz > 0:
                mass[n_filled] = shifted_mz
                intensity[n_filled] = candidate_intensity[i]
                charge_out[n_filled] = charge
                source_index[n_filled] = i
                n_filled += 1

    # Stable sort keeps unshifted peaks ahead of equal-mass shifted ones
    order = np.argsort(mass, kind='mergesort')
    return mass[order], intensity[order], charge_out[order], source_index[order]


def expand_candidate_peaks(
    candidate,
    query,
    fragment_mz_tolerance: float,
    allow_shift: bool,
) -> CandidatePeaks:
    """Working peak list for ``candidate`` given ``query`` (Spectrum wrapper).

    Examples
    --------
    >>> peaks = expand_candidate_peaks(library_spec, query_spec, 0.02, True)
    >>> peaks.mass, peaks.charge
    """
    return CandidatePeaks(*expand_candidate_peaks_numba(
        candidate.mz,
        candidate.intensity,
        candidate.charge,
        candidate.precursor_mz,
        candidate.precursor_charge,
        query.precursor_mz,
        fragment_mz_tolerance,
        allow_shift,
    ))
