"""Pytest configuration for AlphaOpenSearch tests.

Provides small hand-made spectra with known scores plus a random
query/candidate set for property-style checks.
"""

import numpy as np
import pytest

from alphaopensearch.spectrum import Spectrum


@pytest.fixture
def scenario_a_query():
    """Query with two unannotated peaks at 100 and 105."""
    return Spectrum.from_peaks(500.0, 2, [(100.0, 10.0, 0), (105.0, 5.0, 0)])


@pytest.fixture
def scenario_a_candidate():
    """Candidate with a single peak at 100 (same precursor as the query)."""
    return Spectrum.from_peaks(500.0, 2, [(100.0, 8.0, 0)])


@pytest.fixture
def oxidized_query():
    """Query whose precursor is 16 Da above its library spectrum (charge 1)."""
    return Spectrum.from_peaks(516.0, 1, [(284.0, 2.0, 1)])


@pytest.fixture
def unmodified_candidate():
    """Library spectrum: one charge 1 fragment at 300."""
    return Spectrum.from_peaks(500.0, 1, [(300.0, 4.0, 1)])


def _random_spectrum(rng, base_mz, precursor_mz, precursor_charge, n_noise=10):
    """Perturbed copy of base_mz plus noise peaks, on a 0.01 grid."""
    keep = base_mz[rng.random(len(base_mz)) < 0.7]
    jitter = rng.uniform(-0.03, 0.03, len(keep))
    noise = rng.uniform(100.0, 1000.0, n_noise)
    mz = np.round(np.concatenate([keep + jitter, noise]), 2)
    mz.sort()
    intensity = np.round(rng.uniform(1.0, 100.0, len(mz)), 1)
    charge = rng.integers(0, 3, len(mz))
    return Spectrum(precursor_mz, precursor_charge, mz, intensity, charge)


@pytest.fixture
def random_search():
    """Random query plus 25 related candidates (fixed seed).

    Candidate precursors sit below the query precursor, so shifted peaks
    are generated when shifts are allowed.
    """
    rng = np.random.default_rng(7)
    base_mz = np.sort(rng.uniform(100.0, 1000.0, 40))
    query = _random_spectrum(rng, base_mz, 600.0, 2)
    candidates = [
        _random_spectrum(rng, base_mz, 600.0 - rng.uniform(0.0, 20.0), int(rng.integers(1, 4)))
        for _ in range(25)
    ]
    return query, candidates


# Random seed for reproducibility
@pytest.fixture(scope="session", autouse=True)
def set_random_seed():
    """Set random seed for reproducible tests."""
    np.random.seed(42)
