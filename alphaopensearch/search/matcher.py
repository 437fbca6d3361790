"""Configured entry point for library search scoring.

Bundles the matching parameters so a search loop does not have to pass the
fragment tolerance and shift flag around for every query.

Examples
--------
>>> params = MatchingParams(fragment_mz_tolerance=0.02, allow_peak_shifts=True)
>>> matcher = SpectrumMatcher(params)
>>> match = matcher.best_match(query, candidates)
"""

import logging
import math
from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional, Sequence

from ..constants import DEFAULT_ALLOW_PEAK_SHIFTS, DEFAULT_FRAGMENT_MZ_TOLERANCE
from ..spectrum import Spectrum
from .spectrum_match import (
    SpectrumSpectrumMatch,
    best_match,
    best_match_batch,
    score_candidate,
)

logger = logging.getLogger(__name__)


@dataclass
class MatchingParams:
    """Parameters for shifted dot-product matching.

    Attributes
    ----------
    fragment_mz_tolerance : float
        Absolute fragment m/z tolerance in Da (>= 0)
    allow_peak_shifts : bool
        Add precursor-shifted candidate peaks when precursor m/z differ
    parallel : bool
        Score candidates in parallel (Numba prange) instead of one by one
    """

    fragment_mz_tolerance: float = DEFAULT_FRAGMENT_MZ_TOLERANCE
    allow_peak_shifts: bool = DEFAULT_ALLOW_PEAK_SHIFTS
    parallel: bool = False

    def __post_init__(self):
        self.fragment_mz_tolerance = float(self.fragment_mz_tolerance)
        if math.isnan(self.fragment_mz_tolerance) or self.fragment_mz_tolerance < 0:
            raise ValueError(
                f"fragment_mz_tolerance must be >= 0, got {self.fragment_mz_tolerance}"
            )
        self.allow_peak_shifts = bool(self.allow_peak_shifts)
        self.parallel = bool(self.parallel)

    @classmethod
    def from_dict(cls, config: Mapping[str, Any]) -> 'MatchingParams':
        """Create parameters from a config mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(config) - known)
        if unknown:
            logger.warning(f"Ignoring unknown matching parameters: {', '.join(unknown)}")
        return cls(**{key: value for key, value in config.items() if key in known})


class SpectrumMatcher:
    """Scores query spectra against candidate library spectra."""

    def __init__(self, params: Optional[MatchingParams] = None):
        self.params = params if params is not None else MatchingParams()

    def score_candidate(
        self,
        query: Spectrum,
        candidate: Spectrum,
        candidate_index: int = 0,
    ) -> SpectrumSpectrumMatch:
        return score_candidate(
            query,
            candidate,
            self.params.fragment_mz_tolerance,
            self.params.allow_peak_shifts,
            candidate_index,
        )

    def best_match(
        self,
        query: Spectrum,
        candidates: Sequence[Spectrum],
    ) -> Optional[SpectrumSpectrumMatch]:
        """Best candidate for ``query``; None if there are no candidates."""
        search = best_match_batch if self.params.parallel else best_match
        return search(
            query,
            candidates,
            self.params.fragment_mz_tolerance,
            self.params.allow_peak_shifts,
        )
