"""Tests for candidate peak expansion with precursor mass shifts."""

import numpy as np
import pytest

from alphaopensearch.constants import OXIDATION_MASS, PHOSPHO_MASS
from alphaopensearch.search.peak_shifting import (
    CandidatePeaks,
    expand_candidate_peaks,
    expand_candidate_peaks_numba,
    precursor_mass_difference,
    shift_charge_range,
)
from alphaopensearch.spectrum import Spectrum


class TestShiftChargeRange:
    """Test the charge policy used for shifting."""

    def test_known_charge_single_shift(self):
        """Annotated peaks are shifted with their own charge only."""
        assert shift_charge_range(2, 3) == (2, 3)

    def test_known_charge_above_precursor(self):
        """Annotated charge is used even if it exceeds the precursor charge."""
        assert shift_charge_range(3, 2) == (3, 4)

    def test_unknown_charge_up_to_precursor(self):
        """Unannotated peaks get charges 1 .. precursor_charge - 1."""
        assert shift_charge_range(0, 4) == (1, 4)

    def test_unknown_charge_singly_charged_precursor(self):
        """Singly charged precursor gives an empty range for unknown peaks."""
        min_charge, max_charge = shift_charge_range(0, 1)
        assert len(range(min_charge, max_charge)) == 0


class TestPrecursorMassDifference:
    """Test the precursor mass offset."""

    def test_scaled_by_candidate_charge(self):
        """m/z difference is converted to mass with the candidate charge."""
        assert precursor_mass_difference(508.0, 500.0, 2) == pytest.approx(16.0)

    def test_negative_when_query_lighter(self):
        """A lighter query gives a negative difference."""
        assert precursor_mass_difference(495.0, 500.0, 1) < 0


class TestExpandCandidatePeaks:
    """Test the working peak list construction."""

    def test_unshifted_copies_have_charge_zero(self):
        """Original peaks are copied with charge 0 regardless of annotation."""
        candidate = Spectrum.from_peaks(500.0, 2, [(100.0, 1.0, 1), (200.0, 2.0, 2)])
        query = Spectrum.from_peaks(500.0, 2, [(100.0, 1.0)])

        peaks = expand_candidate_peaks(candidate, query, 0.02, allow_shift=True)

        assert isinstance(peaks, CandidatePeaks)
        np.testing.assert_array_equal(peaks.mass, [100.0, 200.0])
        np.testing.assert_array_equal(peaks.charge, [0, 0])
        np.testing.assert_array_equal(peaks.source_index, [0, 1])
        np.testing.assert_array_equal(peaks.intensity, [1.0, 2.0])

    def test_shifts_known_and_unknown_charges(self):
        """Known charges shift once; unknown charges shift per charge state."""
        candidate = Spectrum.from_peaks(500.0, 3, [(100.0, 1.0, 0), (200.0, 2.0, 2)])
        query = Spectrum.from_peaks(505.0, 3, [(100.0, 1.0)])
        # mass_diff = 5 * 3 = 15

        peaks = expand_candidate_peaks(candidate, query, 0.02, allow_shift=True)

        np.testing.assert_allclose(peaks.mass, [85.0, 92.5, 100.0, 192.5, 200.0])
        np.testing.assert_array_equal(peaks.charge, [1, 2, 0, 2, 0])
        np.testing.assert_array_equal(peaks.source_index, [0, 0, 0, 1, 1])
        np.testing.assert_array_equal(peaks.intensity, [1.0, 1.0, 1.0, 2.0, 2.0])

    def test_output_sorted_by_mass(self):
        """Shifted peaks are merged into ascending mass order."""
        candidate = Spectrum.from_peaks(
            500.0, 3, [(150.0, 1.0), (160.0, 1.0), (170.0, 1.0), (400.0, 1.0)]
        )
        query = Spectrum.from_peaks(520.0, 3, [(100.0, 1.0)])

        peaks = expand_candidate_peaks(candidate, query, 0.02, allow_shift=True)

        assert len(peaks.mass) == 4 + 4 * 2
        assert np.all(np.diff(peaks.mass) >= 0)

    def test_single_oxidation_shift(self, oxidized_query, unmodified_candidate):
        """Singly charged fragment is shifted by the full modification mass."""
        peaks = expand_candidate_peaks(unmodified_candidate, oxidized_query, 0.1, True)

        np.testing.assert_allclose(peaks.mass, [284.0, 300.0])
        np.testing.assert_array_equal(peaks.charge, [1, 0])
        np.testing.assert_array_equal(peaks.source_index, [0, 0])

    def test_modification_mass_shift(self):
        """Oxidation offset on a doubly charged precursor."""
        delta_mz = OXIDATION_MASS / 2
        candidate = Spectrum.from_peaks(500.0, 2, [(400.0, 1.0, 0)])
        query = Spectrum.from_peaks(500.0 + delta_mz, 2, [(100.0, 1.0)])

        peaks = expand_candidate_peaks(candidate, query, 0.02, True)

        np.testing.assert_allclose(peaks.mass, [400.0 - OXIDATION_MASS, 400.0])

    def test_phospho_shift_triply_charged(self):
        """Phosphorylation offset spread over fragment charges 1 and 2."""
        candidate = Spectrum.from_peaks(700.0, 3, [(300.0, 2.0, 2), (600.0, 1.0, 0)])
        query = Spectrum.from_peaks(700.0 + PHOSPHO_MASS / 3, 3, [(100.0, 1.0)])

        peaks = expand_candidate_peaks(candidate, query, 0.02, True)

        np.testing.assert_allclose(peaks.mass, [
            300.0 - PHOSPHO_MASS / 2,
            300.0,
            600.0 - PHOSPHO_MASS,
            600.0 - PHOSPHO_MASS / 2,
            600.0,
        ])
        np.testing.assert_array_equal(peaks.charge, [2, 0, 1, 2, 0])
        np.testing.assert_array_equal(peaks.source_index, [0, 0, 1, 1, 1])

    def test_no_shift_when_disabled(self):
        """allow_shift=False returns only unshifted peaks."""
        candidate = Spectrum.from_peaks(500.0, 3, [(100.0, 1.0), (200.0, 2.0)])
        query = Spectrum.from_peaks(520.0, 3, [(100.0, 1.0)])

        peaks = expand_candidate_peaks(candidate, query, 0.02, allow_shift=False)

        np.testing.assert_array_equal(peaks.mass, [100.0, 200.0])
        np.testing.assert_array_equal(peaks.charge, [0, 0])

    def test_no_shift_within_tolerance(self):
        """Mass differences up to the tolerance do not trigger shifts."""
        candidate = Spectrum.from_peaks(500.0, 1, [(100.0, 1.0)])
        query = Spectrum.from_peaks(500.5, 1, [(100.0, 1.0)])

        peaks = expand_candidate_peaks(candidate, query, 0.5, allow_shift=True)

        assert len(peaks.mass) == 1

    def test_no_shift_for_lighter_query(self):
        """Only positive mass differences generate shifted peaks."""
        candidate = Spectrum.from_peaks(500.0, 3, [(100.0, 1.0), (200.0, 2.0)])
        query = Spectrum.from_peaks(480.0, 3, [(100.0, 1.0)])

        peaks = expand_candidate_peaks(candidate, query, 0.02, allow_shift=True)

        assert len(peaks.mass) == 2

    def test_non_positive_shifted_masses_dropped(self):
        """Shifted peaks at m/z <= 0 are silently filtered."""
        candidate = Spectrum.from_peaks(
            500.0, 2, [(10.0, 1.0, 0), (20.0, 1.0, 1), (50.0, 1.0, 1)]
        )
        query = Spectrum.from_peaks(510.0, 2, [(100.0, 1.0)])
        # mass_diff = 20: 10 - 20 < 0, 20 - 20 == 0, 50 - 20 = 30

        peaks = expand_candidate_peaks(candidate, query, 0.02, True)

        np.testing.assert_allclose(peaks.mass, [10.0, 20.0, 30.0, 50.0])
        np.testing.assert_array_equal(peaks.source_index, [0, 1, 2, 2])
        assert np.all(peaks.mass > 0)

    def test_empty_candidate(self):
        """Empty candidate spectrum gives an empty working list."""
        mass, intensity, charge, source_index = expand_candidate_peaks_numba(
            np.empty(0, dtype=np.float64),
            np.empty(0, dtype=np.float64),
            np.empty(0, dtype=np.int64),
            500.0, 2, 520.0, 0.02, True,
        )

        assert len(mass) == len(intensity) == len(charge) == len(source_index) == 0
