"""Shifted dot-product scoring and best-candidate selection.

For every candidate library spectrum:

1. Expand the candidate peaks (unshifted + precursor-shifted copies)
2. Pair query and candidate peaks within the fragment tolerance
3. Greedily assign pairs one-to-one, summing intensity products

The candidate with the highest score wins. Equal scores keep the earlier
candidate, both in the sequential and in the parallel (batch) path.

Examples
--------
>>> from alphaopensearch.search import best_match
>>> match = best_match(query, candidates, fragment_mz_tolerance=0.02, allow_shift=True)
>>> if match is not None:
...     print(match.candidate_index, match.score, match.n_peak_matches)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple, Union

import numpy as np
from numba import njit, prange

from ..spectrum import PackedSpectra, Spectrum, pack_spectra
from .greedy_assignment import assign_peaks_greedy
from .peak_matching import match_peaks_numba
from .peak_shifting import expand_candidate_peaks_numba

logger = logging.getLogger(__name__)


@dataclass
class SpectrumSpectrumMatch:
    """Result of scoring a query against one candidate spectrum.

    Attributes
    ----------
    candidate_index : int
        Position of the candidate in the input sequence
    score : float
        Sum of intensity products over the assigned peak pairs
    peak_matches : np.ndarray (int64), shape (n, 2)
        (query peak index, candidate peak index) pairs in acceptance order.
        Every index appears at most once per column.
    candidate_identifier : str
        Identifier of the candidate spectrum, if it had one
    """

    candidate_index: int
    score: float = 0.0
    peak_matches: np.ndarray = field(
        default_factory=lambda: np.empty((0, 2), dtype=np.int64)
    )
    candidate_identifier: str = ''

    @property
    def query_peak_indices(self) -> np.ndarray:
        return self.peak_matches[:, 0]

    @property
    def candidate_peak_indices(self) -> np.ndarray:
        return self.peak_matches[:, 1]

    @property
    def n_peak_matches(self) -> int:
        return len(self.peak_matches)


# =============================================================================
# Per-candidate Scoring
# =============================================================================

@njit(cache=True)
def score_candidate_numba(
    query_mz: np.ndarray,
    query_intensity: np.ndarray,
    query_charge: np.ndarray,
    query_precursor_mz: float,
    candidate_mz: np.ndarray,
    candidate_intensity: np.ndarray,
    candidate_charge: np.ndarray,
    candidate_precursor_mz: float,
    candidate_precursor_charge: int,
    fragment_mz_tolerance: float,
    allow_shift: bool,
) -> Tuple[float, np.ndarray]:
    """Shifted dot product between a query and one candidate.

    All buffers are local to this call, so it is safe to run for many
    candidates in parallel.

    Returns
    -------
    score : float
    peak_matches : np.ndarray (int64), shape (n, 2)
    """
    mass, intensity, charge, source_index = expand_candidate_peaks_numba(
        candidate_mz,
        candidate_intensity,
        candidate_charge,
        candidate_precursor_mz,
        candidate_precursor_charge,
        query_precursor_mz,
        fragment_mz_tolerance,
        allow_shift,
    )
    weight, query_index, candidate_index = match_peaks_numba(
        query_mz,
        query_intensity,
        query_charge,
        mass,
        intensity,
        charge,
        source_index,
        fragment_mz_tolerance,
    )
    return assign_peaks_greedy(
        weight, query_index, candidate_index, len(query_mz), len(candidate_mz)
    )


def _check_tolerance(fragment_mz_tolerance: float) -> float:
    fragment_mz_tolerance = float(fragment_mz_tolerance)
    if not fragment_mz_tolerance >= 0:
        raise ValueError(
            f"Fragment m/z tolerance must be >= 0, got {fragment_mz_tolerance}"
        )
    return fragment_mz_tolerance


def score_candidate(
    query: Spectrum,
    candidate: Spectrum,
    fragment_mz_tolerance: float,
    allow_shift: bool,
    candidate_index: int = 0,
) -> SpectrumSpectrumMatch:
    """Score a single candidate against the query.

    Parameters
    ----------
    query : Spectrum
        Observed spectrum
    candidate : Spectrum
        Library spectrum
    fragment_mz_tolerance : float
        Absolute fragment m/z tolerance (>= 0)
    allow_shift : bool
        Whether to add precursor-shifted candidate peaks
    candidate_index : int
        Index stored on the returned match

    Returns
    -------
    SpectrumSpectrumMatch
    """
    fragment_mz_tolerance = _check_tolerance(fragment_mz_tolerance)
    score, peak_matches = score_candidate_numba(
        query.mz,
        query.intensity,
        query.charge,
        query.precursor_mz,
        candidate.mz,
        candidate.intensity,
        candidate.charge,
        candidate.precursor_mz,
        candidate.precursor_charge,
        fragment_mz_tolerance,
        bool(allow_shift),
    )
    return SpectrumSpectrumMatch(
        candidate_index=candidate_index,
        score=float(score),
        peak_matches=peak_matches,
        candidate_identifier=candidate.identifier,
    )


# =============================================================================
# Best-candidate Selection (sequential)
# =============================================================================

def best_match(
    query: Spectrum,
    candidates: Sequence[Spectrum],
    fragment_mz_tolerance: float,
    allow_shift: bool,
) -> Optional[SpectrumSpectrumMatch]:
    """Return the highest-scoring candidate match, or None without candidates.

    Candidates are visited in order and a match only replaces the current
    best if its score is strictly higher, so ties go to the earlier candidate.
    """
    fragment_mz_tolerance = _check_tolerance(fragment_mz_tolerance)
    logger.debug(f"Scoring {len(candidates):,} candidates (allow_shift={allow_shift})")

    best = None
    for candidate_index, candidate in enumerate(candidates):
        this_match = score_candidate(
            query, candidate, fragment_mz_tolerance, allow_shift, candidate_index
        )
        if best is None or this_match.score > best.score:
            best = this_match

    if best is not None:
        logger.debug(
            f"Best candidate {best.candidate_index} "
            f"(score={best.score:.4g}, {best.n_peak_matches} peak matches)"
        )
    return best


# =============================================================================
# Batch Scoring (parallel over candidates)
# =============================================================================

@njit(parallel=True, cache=True)
def score_candidates_batch_numba(
    query_mz: np.ndarray,
    query_intensity: np.ndarray,
    query_charge: np.ndarray,
    query_precursor_mz: float,
    mz: np.ndarray,
    intensity: np.ndarray,
    charge: np.ndarray,
    offsets: np.ndarray,
    precursor_mz: np.ndarray,
    precursor_charge: np.ndarray,
    fragment_mz_tolerance: float,
    allow_shift: bool,
) -> np.ndarray:
    """Score every packed candidate against the query (parallel, prange).

    Returns
    -------
    scores : np.ndarray (float64), shape (n_candidates,)
    """
    n_candidates = len(precursor_mz)
    scores = np.zeros(n_candidates, dtype=np.float64)

    for i in prange(n_candidates):
        start = offsets[i]
        end = offsets[i + 1]
        score, _ = score_candidate_numba(
            query_mz,
            query_intensity,
            query_charge,
            query_precursor_mz,
            mz[start:end],
            intensity[start:end],
            charge[start:end],
            precursor_mz[i],
            precursor_charge[i],
            fragment_mz_tolerance,
            allow_shift,
        )
        scores[i] = score

    return scores


def score_candidates_batch(
    query: Spectrum,
    candidates: Union[PackedSpectra, Sequence[Spectrum]],
    fragment_mz_tolerance: float,
    allow_shift: bool,
) -> np.ndarray:
    """Scores of all candidates, in input order (parallel Numba)."""
    fragment_mz_tolerance = _check_tolerance(fragment_mz_tolerance)
    packed = candidates if isinstance(candidates, PackedSpectra) else pack_spectra(candidates)
    return score_candidates_batch_numba(
        query.mz,
        query.intensity,
        query.charge,
        query.precursor_mz,
        packed.mz,
        packed.intensity,
        packed.charge,
        packed.offsets,
        packed.precursor_mz,
        packed.precursor_charge,
        fragment_mz_tolerance,
        bool(allow_shift),
    )


def best_match_batch(
    query: Spectrum,
    candidates: Union[PackedSpectra, Sequence[Spectrum]],
    fragment_mz_tolerance: float,
    allow_shift: bool,
) -> Optional[SpectrumSpectrumMatch]:
    """Parallel equivalent of best_match().

    Candidate scores are computed in parallel; the winner is the first
    maximum of the score vector (np.argmax), which preserves the first-seen
    tie-break. The winner is then re-scored to recover its peak matches.
    """
    fragment_mz_tolerance = _check_tolerance(fragment_mz_tolerance)
    packed = candidates if isinstance(candidates, PackedSpectra) else pack_spectra(candidates)
    if packed.n_spectra == 0:
        return None

    scores = score_candidates_batch(query, packed, fragment_mz_tolerance, allow_shift)
    winner = int(np.argmax(scores))
    logger.debug(
        f"Scored {len(scores):,} candidates in parallel, "
        f"best candidate {winner} (score={scores[winner]:.4g})"
    )

    if isinstance(candidates, PackedSpectra):
        candidate = candidates.get_spectrum(winner)
    else:
        candidate = candidates[winner]
    return score_candidate(query, candidate, fragment_mz_tolerance, allow_shift, winner)
