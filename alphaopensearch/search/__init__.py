"""Open (modification-tolerant) spectral library search scoring.

Core algorithms:
1. Candidate peak expansion with precursor mass shifts
2. Two-pointer peak matching within an absolute fragment tolerance
3. Greedy one-to-one peak assignment (shifted dot product)
4. Best-candidate selection, sequential or parallel over candidates
"""

from .peak_shifting import (
    CandidatePeaks,
    shift_charge_range,
    precursor_mass_difference,
    expand_candidate_peaks,
)

from .peak_matching import (
    PeakMatches,
    charges_compatible,
    match_peaks,
)

from .greedy_assignment import (
    greedy_order,
    assign_peaks_greedy,
)

from .spectrum_match import (
    SpectrumSpectrumMatch,
    score_candidate,
    best_match,
    score_candidates_batch,
    best_match_batch,
)

from .matcher import (
    MatchingParams,
    SpectrumMatcher,
)

__all__ = [
    # Peak expansion
    'CandidatePeaks',
    'shift_charge_range',
    'precursor_mass_difference',
    'expand_candidate_peaks',
    # Peak matching
    'PeakMatches',
    'charges_compatible',
    'match_peaks',
    # Greedy assignment
    'greedy_order',
    'assign_peaks_greedy',
    # Scoring and selection
    'SpectrumSpectrumMatch',
    'score_candidate',
    'best_match',
    'score_candidates_batch',
    'best_match_batch',
    # Configuration
    'MatchingParams',
    'SpectrumMatcher',
]
