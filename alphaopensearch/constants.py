"""Constants and default settings for open spectral library search.

Tolerances are absolute (Da / m/z units), matching how fragment windows are
applied by the shifted dot-product matcher. Modification masses are provided
so callers can express precursor offsets between a query and a library
spectrum without hard-coding numbers.

Sources
-------
- Unimod modification masses: https://www.unimod.org/modifications_list.php
"""

# =============================================================================
# Default Matching Settings
# =============================================================================

# Default fragment m/z tolerance (absolute, Da)
# Typical for low/medium resolution library searching
DEFAULT_FRAGMENT_MZ_TOLERANCE = 0.05

# Shifted peaks are generated by default when the precursor m/z differs
DEFAULT_ALLOW_PEAK_SHIFTS = True

# Lowest charge a fragment can be shifted with
# Charge 0 is reserved for "unknown" and for unshifted peaks
MIN_SHIFT_CHARGE = 1

# =============================================================================
# Common Modification Masses
# =============================================================================

# Oxidation of Methionine (Unimod:35)
OXIDATION_MASS = 15.994915

# Phosphorylation (Unimod:21)
PHOSPHO_MASS = 79.966331
