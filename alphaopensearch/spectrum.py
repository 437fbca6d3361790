"""Spectrum containers for library search.

Spectra are stored as parallel numpy arrays (m/z, intensity, charge) so they
can be handed straight to the Numba kernels in :mod:`alphaopensearch.search`.
Sortedness of the m/z array is checked once at construction; the kernels
themselves never validate their input.
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, NamedTuple, Optional, Sequence, Tuple

import numpy as np


class Peak(NamedTuple):
    """A single fragment peak.

    Attributes
    ----------
    mass : float
        Peak m/z (shifted peaks carry their shifted m/z)
    intensity : float
        Peak intensity
    charge : int
        Fragment charge, 0 if unknown or unshifted
    source_index : int
        Index of the originating peak in its source spectrum
    """
    mass: float
    intensity: float
    charge: int
    source_index: int


@dataclass
class Spectrum:
    """MS2 spectrum with precursor information.

    Parameters
    ----------
    precursor_mz : float
        Precursor m/z
    precursor_charge : int
        Precursor charge (0 if unknown)
    mz : np.ndarray
        Peak m/z values, non-decreasing
    intensity : np.ndarray
        Peak intensities (parallel to mz)
    charge : np.ndarray, optional
        Peak charges, 0 = unknown (default: all unknown)
    identifier : str, optional
        Free-form spectrum identifier (scan number, library key, ...)

    Raises
    ------
    ValueError
        If the arrays are not 1D, differ in length, mz is not sorted
        ascending, or any charge is negative.
    """

    precursor_mz: float
    precursor_charge: int
    mz: np.ndarray
    intensity: np.ndarray
    charge: Optional[np.ndarray] = None
    identifier: str = ''

    def __post_init__(self):
        self.precursor_mz = float(self.precursor_mz)
        if not np.isfinite(self.precursor_mz):
            raise ValueError(f"Precursor m/z must be finite, got {self.precursor_mz}")
        self.precursor_charge = int(self.precursor_charge)
        if self.precursor_charge < 0:
            raise ValueError(
                f"Precursor charge must be non-negative, got {self.precursor_charge}"
            )

        self.mz = np.ascontiguousarray(self.mz, dtype=np.float64)
        self.intensity = np.ascontiguousarray(self.intensity, dtype=np.float64)
        if self.charge is None:
            self.charge = np.zeros(len(self.mz), dtype=np.int64)
        else:
            self.charge = np.ascontiguousarray(self.charge, dtype=np.int64)

        for name, values in (('mz', self.mz), ('intensity', self.intensity),
                             ('charge', self.charge)):
            if values.ndim != 1:
                raise ValueError(f"{name} must be one-dimensional, got shape {values.shape}")
        if not len(self.mz) == len(self.intensity) == len(self.charge):
            raise ValueError(
                f"Peak arrays differ in length: mz={len(self.mz)}, "
                f"intensity={len(self.intensity)}, charge={len(self.charge)}"
            )
        if np.any(np.isnan(self.mz)):
            raise ValueError("Peak m/z values must not be NaN")
        if len(self.mz) > 1 and np.any(np.diff(self.mz) < 0):
            raise ValueError("Peak m/z values must be sorted ascending")
        if np.any(self.charge < 0):
            raise ValueError("Peak charges must be non-negative (0 = unknown)")

    @classmethod
    def from_peaks(
        cls,
        precursor_mz: float,
        precursor_charge: int,
        peaks: Iterable[Sequence[float]],
        identifier: str = '',
    ) -> 'Spectrum':
        """Build a spectrum from (mz, intensity[, charge]) tuples.

        Peaks are sorted by m/z (stable) before the spectrum is created.

        Examples
        --------
        >>> spec = Spectrum.from_peaks(500.0, 2, [(105.0, 5.0), (100.0, 10.0, 1)])
        >>> spec.mz
        array([100., 105.])
        """
        rows = [tuple(p) for p in peaks]
        for row in rows:
            if len(row) not in (2, 3):
                raise ValueError(f"Peaks must be (mz, intensity[, charge]), got {row}")
        rows.sort(key=lambda row: row[0])

        mz = np.array([row[0] for row in rows], dtype=np.float64)
        intensity = np.array([row[1] for row in rows], dtype=np.float64)
        charge = np.array([row[2] if len(row) == 3 else 0 for row in rows], dtype=np.int64)
        return cls(precursor_mz, precursor_charge, mz, intensity, charge, identifier)

    @property
    def n_peaks(self) -> int:
        return len(self.mz)

    def __len__(self) -> int:
        return len(self.mz)

    def peak_mass(self, index: int) -> float:
        return float(self.mz[index])

    def peak_intensity(self, index: int) -> float:
        return float(self.intensity[index])

    def peak_charge(self, index: int) -> int:
        return int(self.charge[index])

    def peak(self, index: int) -> Peak:
        """Return peak ``index`` as an immutable Peak."""
        return Peak(self.peak_mass(index), self.peak_intensity(index),
                    self.peak_charge(index), index)

    def peaks(self) -> Iterator[Peak]:
        for index in range(self.n_peaks):
            yield self.peak(index)


class PackedSpectra(NamedTuple):
    """Flat storage of many spectra for batch (parallel) scoring.

    Peaks of spectrum ``i`` live in ``mz[offsets[i]:offsets[i + 1]]`` (and the
    same slice of ``intensity`` / ``charge``).

    Attributes
    ----------
    mz, intensity : np.ndarray (float64)
        Concatenated peak arrays
    charge : np.ndarray (int64)
        Concatenated peak charges
    offsets : np.ndarray (int64), shape (n_spectra + 1,)
        Start offset of every spectrum, plus the total peak count
    precursor_mz : np.ndarray (float64), shape (n_spectra,)
    precursor_charge : np.ndarray (int64), shape (n_spectra,)
    identifier : tuple of str
        One identifier per spectrum (empty tuple if unknown)
    """
    mz: np.ndarray
    intensity: np.ndarray
    charge: np.ndarray
    offsets: np.ndarray
    precursor_mz: np.ndarray
    precursor_charge: np.ndarray
    identifier: Tuple[str, ...] = ()

    @property
    def n_spectra(self) -> int:
        return len(self.precursor_mz)

    def get_spectrum(self, index: int) -> Spectrum:
        """Unpack spectrum ``index`` into a Spectrum (copies the peak slices)."""
        start, end = self.offsets[index], self.offsets[index + 1]
        return Spectrum(
            self.precursor_mz[index],
            self.precursor_charge[index],
            self.mz[start:end].copy(),
            self.intensity[start:end].copy(),
            self.charge[start:end].copy(),
            self.identifier[index] if self.identifier else '',
        )


def pack_spectra(spectra: Sequence[Spectrum]) -> PackedSpectra:
    """Concatenate spectra into a PackedSpectra flat layout.

    Examples
    --------
    >>> packed = pack_spectra([spec_a, spec_b])
    >>> packed.offsets
    array([0, 12, 30])
    """
    n = len(spectra)
    offsets = np.zeros(n + 1, dtype=np.int64)
    for i, spectrum in enumerate(spectra):
        offsets[i + 1] = offsets[i] + spectrum.n_peaks

    if n > 0:
        mz = np.concatenate([s.mz for s in spectra])
        intensity = np.concatenate([s.intensity for s in spectra])
        charge = np.concatenate([s.charge for s in spectra])
    else:
        mz = np.empty(0, dtype=np.float64)
        intensity = np.empty(0, dtype=np.float64)
        charge = np.empty(0, dtype=np.int64)

    return PackedSpectra(
        mz=np.ascontiguousarray(mz, dtype=np.float64),
        intensity=np.ascontiguousarray(intensity, dtype=np.float64),
        charge=np.ascontiguousarray(charge, dtype=np.int64),
        offsets=offsets,
        precursor_mz=np.array([s.precursor_mz for s in spectra], dtype=np.float64),
        precursor_charge=np.array([s.precursor_charge for s in spectra], dtype=np.int64),
        identifier=tuple(s.identifier for s in spectra),
    )
