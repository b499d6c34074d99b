import pytest
import numpy as np
from pyslgia.grid import GaussLegendreGrid


@pytest.mark.parametrize("lmax", [1, 8, 31])
def test_grid_dimensions(lmax):
    """The grid has lmax + 1 colatitudes and twice as many longitudes."""
    grid = GaussLegendreGrid(lmax)
    assert grid.nlat == lmax + 1
    assert grid.nlon == 2 * (lmax + 1)
    assert grid.shape == (lmax + 1, 2 * (lmax + 1))
    assert grid.zeros().shape == grid.shape


@pytest.mark.parametrize("lmax", [1, 8, 31])
def test_weights_sum_to_two(lmax):
    """The weights integrate a constant over [-1, 1]."""
    grid = GaussLegendreGrid(lmax)
    assert np.isclose(np.sum(grid.weights), 2.0)


@pytest.mark.parametrize("lmax", [2, 8, 16])
def test_quadrature_exactness(lmax):
    """
    The quadrature integrates monomials exactly up to degree 2 * lmax + 1.
    """
    grid = GaussLegendreGrid(lmax)
    x, w = grid.nodes, grid.weights
    for p in range(2 * lmax + 2):
        exact = 0.0 if p % 2 else 2.0 / (p + 1)
        assert np.isclose(np.sum(w * x**p), exact, atol=1e-12)


def test_nodes_ordered_north_to_south():
    """Colatitudes increase, so the first row is nearest the north pole."""
    grid = GaussLegendreGrid(8)
    assert np.all(np.diff(grid.colatitudes) > 0)
    assert np.all(np.diff(grid.latitudes) < 0)
    assert np.allclose(grid.latitudes, -grid.latitudes[::-1])


def test_longitudes_cover_circle():
    """Longitudes are equally spaced on [0, 360)."""
    grid = GaussLegendreGrid(8)
    lons = grid.longitudes
    assert lons[0] == 0.0
    assert lons[-1] < 360.0
    assert np.allclose(np.diff(lons), 360.0 / grid.nlon)


def test_meshgrid_shape():
    """The meshgrid arrays have the shape of a field."""
    grid = GaussLegendreGrid(4)
    lats, lons = grid.meshgrid()
    assert lats.shape == grid.shape
    assert lons.shape == grid.shape
    assert np.allclose(lats[:, 0], grid.latitudes)
    assert np.allclose(lons[0, :], grid.longitudes)


def test_check_field():
    """Fields with the wrong shape are rejected."""
    grid = GaussLegendreGrid(4)
    grid.check_field(grid.zeros())
    with pytest.raises(ValueError, match="expected"):
        grid.check_field(np.zeros((3, 3)), "topography")


@pytest.mark.parametrize("lmax", [0, -1])
def test_invalid_degree(lmax):
    """A truncation degree below one is rejected."""
    with pytest.raises(ValueError, match="at least 1"):
        GaussLegendreGrid(lmax)


def test_non_integer_degree():
    """A non-integer truncation degree is rejected."""
    with pytest.raises(TypeError, match="must be an integer"):
        GaussLegendreGrid(8.5)


def test_grid_equality():
    """Grids with the same degree compare equal."""
    assert GaussLegendreGrid(8) == GaussLegendreGrid(8)
    assert GaussLegendreGrid(8) != GaussLegendreGrid(9)
