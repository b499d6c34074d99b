"""
Utility functions and classes for packed spherical harmonic coefficient
vectors and simple field operations.
"""

from typing import Optional

import numpy as np
from pyshtools import SHCoeffs


def _check_degree(lmax):
    if isinstance(lmax, bool) or not isinstance(lmax, (int, np.integer)):
        raise TypeError(f"lmax must be an integer, got {lmax!r}")
    if lmax < 0:
        raise ValueError(f"lmax must be non-negative, got {lmax}")
    return int(lmax)


class TriangularIndex:
    """
    Bijection between (degree, order) pairs with 0 <= m <= l <= lmax and
    positions in a packed coefficient vector.

    The coefficient for (l, m) is stored at index l(l+1)/2 + m, so that
    index 0 is the degree-0 term and the six entries with l <= 2 come
    first. This matches the packing used by pyshtools for its Legendre
    function arrays.
    """

    def __init__(self, lmax: int):
        """
        Args:
            lmax (int): Maximum degree of the packing.

        Raises:
            TypeError: If lmax is not an integer.
            ValueError: If lmax is negative.
        """
        self._lmax = _check_degree(lmax)
        self._size = (self._lmax + 1) * (self._lmax + 2) // 2

        self._degrees = np.empty(self._size, dtype=int)
        self._orders = np.empty(self._size, dtype=int)
        for l in range(self._lmax + 1):
            start = l * (l + 1) // 2
            self._degrees[start : start + l + 1] = l
            self._orders[start : start + l + 1] = np.arange(l + 1)

        # For each order, the packed indices of degrees m..lmax.
        self._order_indices = [
            np.array([l * (l + 1) // 2 + m for l in range(m, self._lmax + 1)])
            for m in range(self._lmax + 1)
        ]

    def __repr__(self):
        return f"TriangularIndex(lmax={self.lmax})"

    def __len__(self):
        return self._size

    @property
    def lmax(self) -> int:
        """Return the maximum degree."""
        return self._lmax

    @property
    def size(self) -> int:
        """Return the length of a packed vector."""
        return self._size

    @property
    def degrees(self) -> np.ndarray:
        """Return the degree of every packed entry."""
        return self._degrees.copy()

    @property
    def orders(self) -> np.ndarray:
        """Return the order of every packed entry."""
        return self._orders.copy()

    def index(self, l: int, m: int) -> int:
        """
        Return the packed index of the (l, m) coefficient.

        Raises:
            ValueError: If (l, m) lies outside the packing.
        """
        if not (0 <= m <= l <= self._lmax):
            raise ValueError(
                f"(l, m) = ({l}, {m}) is out of bounds for lmax = {self._lmax}"
            )
        return l * (l + 1) // 2 + m

    def degree_of(self, index: int) -> int:
        """Return the degree of a packed index."""
        self._check_index(index)
        return int(self._degrees[index])

    def order_of(self, index: int) -> int:
        """Return the order of a packed index."""
        self._check_index(index)
        return int(self._orders[index])

    def order_indices(self, m: int) -> np.ndarray:
        """Return the packed indices of the coefficients of order m."""
        if not 0 <= m <= self._lmax:
            raise ValueError(f"order {m} is out of bounds for lmax = {self._lmax}")
        return self._order_indices[m]

    def expand_by_degree(self, values) -> np.ndarray:
        """
        Return a packed vector whose entries are values[l] for the
        degree l of each entry.

        Raises:
            ValueError: If fewer than lmax + 1 values are given.
        """
        values = np.asarray(values)
        if values.shape[-1] < self._lmax + 1:
            raise ValueError(
                f"lmax = {self._lmax} is larger than the maximum degree "
                f"of the values, {values.shape[-1] - 1}"
            )
        return values[..., self._degrees]

    def zeros(self) -> np.ndarray:
        """Return a packed complex vector of zeros."""
        return np.zeros(self._size, dtype=complex)

    def _check_index(self, index):
        if not 0 <= index < self._size:
            raise ValueError(f"index {index} is out of bounds for size {self._size}")


def packed_to_shcoeffs(coeffs, lmax: Optional[int] = None) -> SHCoeffs:
    """
    Convert a packed complex coefficient vector to a real pyshtools
    SHCoeffs object with 4pi normalisation and no Condon-Shortley phase.

    Args:
        coeffs (numpy array): Packed coefficient vector.
        lmax (int): Maximum degree. Inferred from the length if None.

    Returns:
        SHCoeffs: Equivalent real coefficients.
    """
    coeffs = np.asarray(coeffs, dtype=complex)
    if lmax is None:
        lmax = int(round((np.sqrt(8 * coeffs.size + 1) - 3) / 2))
    packing = TriangularIndex(lmax)
    if coeffs.size != packing.size:
        raise ValueError("Input vector has incorrect size")

    array = np.zeros((2, lmax + 1, lmax + 1))
    l, m = packing.degrees, packing.orders
    zonal = m == 0
    array[0, l[zonal], 0] = coeffs[zonal].real
    array[0, l[~zonal], m[~zonal]] = np.sqrt(2) * coeffs[~zonal].real
    array[1, l[~zonal], m[~zonal]] = -np.sqrt(2) * coeffs[~zonal].imag
    return SHCoeffs.from_array(array, normalization="4pi", csphase=1)


def shcoeffs_to_packed(shcoeffs: SHCoeffs) -> np.ndarray:
    """
    Convert a real pyshtools SHCoeffs object to a packed complex vector.
    """
    array = shcoeffs.to_array(normalization="4pi", csphase=1)
    lmax = array.shape[1] - 1
    packing = TriangularIndex(lmax)
    l, m = packing.degrees, packing.orders
    coeffs = (array[0, l, m] - 1j * array[1, l, m]) / np.sqrt(2)
    zonal = m == 0
    coeffs[zonal] = array[0, l[zonal], 0]
    return coeffs


def ocean_function(topography, lakes=None) -> np.ndarray:
    """
    Return the ocean function: one where the topography, with any lake
    water added, lies below sea level and zero elsewhere.
    """
    surface = np.asarray(topography, dtype=float)
    if lakes is not None:
        surface = surface + np.asarray(lakes, dtype=float)
    return np.where(surface < 0, 1.0, 0.0)
