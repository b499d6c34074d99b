"""
Module for the Gauss-Legendre quadrature grid on which all spatial
fields are defined.
"""

import numpy as np
import pyshtools as pysh


class GaussLegendreGrid:
    """
    Gauss-Legendre grid for a given truncation degree.

    The grid has lmax + 1 colatitude nodes, ordered from north to south,
    and twice as many equally spaced longitude nodes on [0, 360). The
    quadrature is exact for polynomials in cos(colatitude) up to degree
    2 * lmax + 1.
    """

    def __init__(self, lmax):
        """
        Args:
            lmax (int): Truncation degree.

        Raises:
            TypeError: If lmax is not an integer.
            ValueError: If lmax is less than 1.
        """

        if isinstance(lmax, bool) or not isinstance(lmax, (int, np.integer)):
            raise TypeError(f"lmax must be an integer, got {lmax!r}")
        if lmax < 1:
            raise ValueError(f"lmax must be at least 1, got {lmax}")

        self._lmax = int(lmax)

        zeros, weights = pysh.expand.SHGLQ(self._lmax)
        order = np.argsort(zeros)[::-1]
        self._nodes = np.asarray(zeros)[order]
        self._weights = np.asarray(weights)[order]

        self._nlon = 2 * (self._lmax + 1)
        self._longitudes = np.arange(self._nlon) * (360.0 / self._nlon)

    def __repr__(self):
        return f"GaussLegendreGrid(lmax={self.lmax})"

    def __eq__(self, other):
        if not isinstance(other, GaussLegendreGrid):
            return NotImplemented
        return self.lmax == other.lmax

    def __hash__(self):
        return hash((GaussLegendreGrid, self.lmax))

    @property
    def lmax(self):
        """Return the truncation degree."""
        return self._lmax

    @property
    def nlat(self):
        """Return the number of colatitude nodes."""
        return self._lmax + 1

    @property
    def nlon(self):
        """Return the number of longitude nodes."""
        return self._nlon

    @property
    def shape(self):
        """Return the shape of a spatial field on the grid."""
        return (self.nlat, self.nlon)

    @property
    def nodes(self):
        """Return the quadrature nodes, cos(colatitude)."""
        return self._nodes.copy()

    @property
    def weights(self):
        """Return the quadrature weights. These sum to 2."""
        return self._weights.copy()

    @property
    def colatitudes(self):
        """Return the colatitudes in degrees."""
        return np.degrees(np.arccos(self._nodes))

    @property
    def colatitudes_radians(self):
        """Return the colatitudes in radians."""
        return np.arccos(self._nodes)

    @property
    def latitudes(self):
        """Return the latitudes in degrees."""
        return 90.0 - self.colatitudes

    @property
    def longitudes(self):
        """Return the longitudes in degrees."""
        return self._longitudes.copy()

    @property
    def longitudes_radians(self):
        """Return the longitudes in radians."""
        return np.radians(self._longitudes)

    def meshgrid(self):
        """
        Return (latitudes, longitudes) in degrees as two arrays with the
        shape of a spatial field.
        """
        lons, lats = np.meshgrid(self.longitudes, self.latitudes)
        return lats, lons

    def zeros(self):
        """Return a spatial field of zeros."""
        return np.zeros(self.shape)

    def constant(self, value):
        """Return a spatial field of constant value."""
        return np.full(self.shape, float(value))

    def check_field(self, field, name="field"):
        """
        Check that a spatial field is defined on this grid.

        Raises:
            ValueError: If the shape does not match.
        """
        field = np.asarray(field)
        if field.shape != self.shape:
            raise ValueError(
                f"{name} has shape {field.shape}, expected {self.shape}"
            )
        return field
