"""AlphaOpenSearch - Numba-accelerated open spectral library search scoring.

Scores an observed MS2 spectrum against candidate library spectra with a
shifted dot product: library fragments may be matched directly, or after
shifting them by the precursor mass difference to account for an
unexpected modification.
"""

__version__ = "0.1.0"

from alphaopensearch import search
from alphaopensearch.spectrum import Peak, Spectrum, PackedSpectra, pack_spectra
from alphaopensearch.search import (
    SpectrumSpectrumMatch,
    MatchingParams,
    SpectrumMatcher,
    best_match,
    best_match_batch,
    score_candidate,
)

__all__ = [
    "search",
    "Peak",
    "Spectrum",
    "PackedSpectra",
    "pack_spectra",
    "SpectrumSpectrumMatch",
    "MatchingParams",
    "SpectrumMatcher",
    "best_match",
    "best_match_batch",
    "score_candidate",
]
