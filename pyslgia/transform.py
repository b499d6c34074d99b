"""
Module for the spherical harmonic transform between spatial fields on a
Gauss-Legendre grid and packed complex coefficient vectors.

A real field is represented as

    f = sum_l [ a_l0 P_l0 + 2 Re sum_{m >= 1} a_lm P_lm exp(i m lon) ],

where the P_lm are associated Legendre functions normalised to have unit
mean square over the sphere. With this convention the degree-0
coefficient is the spatial mean of the field.
"""

import numpy as np
import pyshtools as pysh

from pyslgia.grid import GaussLegendreGrid
from pyslgia.utils import TriangularIndex


class SHTransform:
    """
    Forward and inverse spherical harmonic transforms on a
    Gauss-Legendre grid, using Legendre functions precomputed on the
    grid nodes.
    """

    def __init__(self, grid, /, *, lmax=None):
        """
        Args:
            grid (GaussLegendreGrid): The spatial grid.
            lmax (int): Truncation degree of the expansions. Defaults to
                that of the grid, and cannot exceed it.

        Raises:
            ValueError: If lmax is larger than the degree of the grid.
        """
        if not isinstance(grid, GaussLegendreGrid):
            raise TypeError("grid must be a GaussLegendreGrid")

        if lmax is None:
            lmax = grid.lmax
        if lmax > grid.lmax:
            raise ValueError(
                f"lmax = {lmax} is larger than the maximum degree of the grid"
            )

        self._grid = grid
        self._packing = TriangularIndex(lmax)

        self._weights = grid.weights
        self._legendre = self.legendre_functions(grid.colatitudes)

    # -----------------------------------------------#
    #                   Properties                   #
    # -----------------------------------------------#

    @property
    def grid(self):
        """Return the spatial grid."""
        return self._grid

    @property
    def lmax(self):
        """Return the truncation degree."""
        return self._packing.lmax

    @property
    def packing(self):
        """Return the packing of the coefficient vectors."""
        return self._packing

    @property
    def size(self):
        """Return the length of a coefficient vector."""
        return self._packing.size

    @property
    def legendre(self):
        """Return the Legendre functions on the grid nodes."""
        return self._legendre

    # -----------------------------------------------#
    #                 Public methods                 #
    # -----------------------------------------------#

    def legendre_functions(self, colatitudes):
        """
        Evaluate the normalised associated Legendre functions.

        Args:
            colatitudes (array): Colatitudes in degrees.

        Returns:
            numpy array: Values with shape (len(colatitudes), size), the
                second axis being packed in (l, m).
        """
        colatitudes = np.atleast_1d(np.asarray(colatitudes, dtype=float))
        lmax = self.lmax
        scale = np.where(self._packing.orders > 0, 1 / np.sqrt(2), 1.0)
        table = np.empty((colatitudes.size, self.size))
        for i, z in enumerate(np.cos(np.radians(colatitudes))):
            table[i, :] = pysh.legendre.PlmBar(lmax, z, csphase=1) * scale
        return table

    def analysis(self, field):
        """
        Return the packed coefficients of a spatial field.

        Args:
            field (numpy array): Real field on the grid.

        Returns:
            numpy array: Packed complex coefficients.
        """
        field = self._grid.check_field(field)
        fourier = np.fft.fft(field, axis=1) * (2 * np.pi / self._grid.nlon)
        weighted = self._legendre * self._weights[:, np.newaxis]

        coeffs = self._packing.zeros()
        for m in range(self.lmax + 1):
            ks = self._packing.order_indices(m)
            coeffs[ks] = weighted[:, ks].T @ fourier[:, m]
        return coeffs / (4 * np.pi)

    def synthesis(self, coeffs, /, *, legendre=None, longitudes=None):
        """
        Return the spatial field with given packed coefficients.

        By default the field is evaluated on the native grid. Legendre
        functions precomputed on other colatitudes (see
        legendre_functions) and a set of longitudes can be given instead,
        in which case the field is evaluated on the grid they define.

        Args:
            coeffs (numpy array): Packed coefficients.
            legendre (numpy array): Optional Legendre function table.
            longitudes (numpy array): Optional longitudes in degrees.

        Returns:
            numpy array: The real field.
        """
        coeffs = self._check_coefficients(coeffs)

        if legendre is None:
            legendre = self._legendre
        elif legendre.ndim != 2 or legendre.shape[1] != self.size:
            raise ValueError(
                f"legendre has shape {legendre.shape}, "
                f"expected (n, {self.size})"
            )

        fourier = np.zeros((legendre.shape[0], self.lmax + 1), dtype=complex)
        for m in range(self.lmax + 1):
            ks = self._packing.order_indices(m)
            fourier[:, m] = legendre[:, ks] @ coeffs[ks]

        if longitudes is None and legendre is self._legendre:
            nlon = self._grid.nlon
            padded = np.zeros((fourier.shape[0], nlon // 2 + 1), dtype=complex)
            padded[:, : self.lmax + 1] = fourier
            padded[:, 0] = padded[:, 0].real
            return nlon * np.fft.irfft(padded, n=nlon, axis=1)

        if longitudes is None:
            longitudes = self._grid.longitudes
        phases = np.exp(
            1j
            * np.outer(np.arange(1, self.lmax + 1), np.radians(np.atleast_1d(longitudes)))
        )
        return fourier[:, :1].real + 2 * (fourier[:, 1:] @ phases).real

    def mean(self, field):
        """Return the spatial mean of a field, its degree-0 coefficient."""
        field = self._grid.check_field(field)
        return (self._weights @ field.mean(axis=1)) / 2

    def _check_coefficients(self, coeffs):
        # Check a coefficient vector is compatible with the truncation degree.
        coeffs = np.asarray(coeffs)
        if coeffs.shape != (self.size,):
            raise ValueError(
                f"coefficient vector has shape {coeffs.shape}, expected ({self.size},)"
            )
        return coeffs
