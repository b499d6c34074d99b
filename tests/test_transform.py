import pytest
import numpy as np
from pyslgia.grid import GaussLegendreGrid
from pyslgia.transform import SHTransform
from pyslgia.utils import packed_to_shcoeffs


def random_coefficients(transform: SHTransform, seed: int = 0) -> np.ndarray:
    """Returns random packed coefficients of a real field."""
    rng = np.random.default_rng(seed)
    coeffs = rng.standard_normal(transform.size) + 1j * rng.standard_normal(
        transform.size
    )
    coeffs[transform.packing.orders == 0] = coeffs[transform.packing.orders == 0].real
    return coeffs


@pytest.fixture(scope="module", params=[1, 8, 31], ids=["lmax1", "lmax8", "lmax31"])
def transform(request):
    """Provides a transform on the native grid of several degrees."""
    return SHTransform(GaussLegendreGrid(request.param))


# ==================================================================== #
#                          Round trip tests                            #
# ==================================================================== #


def test_coefficient_round_trip(transform: SHTransform):
    """Analysis recovers the coefficients of a band-limited field."""
    coeffs = random_coefficients(transform)
    field = transform.synthesis(coeffs)
    assert np.allclose(transform.analysis(field), coeffs, rtol=1e-8, atol=1e-10)


def test_field_round_trip(transform: SHTransform):
    """Synthesis of the analysis reproduces a band-limited field."""
    field = transform.synthesis(random_coefficients(transform, seed=1))
    recovered = transform.synthesis(transform.analysis(field))
    assert np.max(np.abs(recovered - field)) <= 1e-6 * np.max(np.abs(field))


def test_synthesis_is_real(transform: SHTransform):
    """Fields are real arrays on the grid."""
    field = transform.synthesis(random_coefficients(transform))
    assert field.shape == transform.grid.shape
    assert np.isrealobj(field)


def test_analysis_is_linear(transform: SHTransform):
    """Analysis is linear in the field."""
    f = transform.synthesis(random_coefficients(transform, seed=2))
    g = np.random.default_rng(3).standard_normal(transform.grid.shape)
    a, b = 2.5, -0.75
    assert np.allclose(
        transform.analysis(a * f + b * g),
        a * transform.analysis(f) + b * transform.analysis(g),
    )


@pytest.mark.parametrize("l, m", [(0, 0), (2, 1), (5, 0), (8, 8)])
def test_single_coefficient(l, m):
    """A single harmonic transforms to exactly one nonzero coefficient."""
    transform = SHTransform(GaussLegendreGrid(8))
    coeffs = np.zeros(transform.size, dtype=complex)
    i = transform.packing.index(l, m)
    coeffs[i] = 1.0
    recovered = transform.analysis(transform.synthesis(coeffs))
    assert np.isclose(recovered[i], 1.0)
    others = np.delete(recovered, i)
    assert np.all(np.abs(others) < 1e-10)


def test_unit_mean_square():
    """Each basis function has unit mean square over the sphere."""
    transform = SHTransform(GaussLegendreGrid(6))
    for i in range(transform.size):
        coeffs = np.zeros(transform.size, dtype=complex)
        coeffs[i] = 1.0 if transform.packing.order_of(i) == 0 else 1 / np.sqrt(2)
        field = transform.synthesis(coeffs)
        assert np.isclose(transform.mean(field**2), 1.0)


# ==================================================================== #
#                         Indicator field tests                        #
# ==================================================================== #


def test_constant_field_mean():
    """The degree-0 coefficient of a constant field is that constant."""
    transform = SHTransform(GaussLegendreGrid(8))
    field = transform.grid.constant(4.2)
    coeffs = transform.analysis(field)
    assert np.isclose(coeffs[0], 4.2)
    assert np.allclose(coeffs[1:], 0, atol=1e-12)
    assert np.isclose(transform.mean(field), 4.2)


@pytest.mark.parametrize("lmax", [7, 15, 63])
def test_northern_hemisphere_fraction(lmax):
    """An indicator of the northern hemisphere covers half the sphere."""
    transform = SHTransform(GaussLegendreGrid(lmax))
    lats, _ = transform.grid.meshgrid()
    indicator = np.where(lats > 0, 1.0, 0.0)
    assert np.isclose(transform.analysis(indicator)[0].real, 0.5)


def test_indicator_fraction_is_quadrature_weighted():
    """The degree-0 coefficient of an indicator is its weighted area."""
    transform = SHTransform(GaussLegendreGrid(8))
    indicator = transform.grid.zeros()
    indicator[0, :] = 1.0
    expected = transform.grid.weights[0] / 2
    assert np.isclose(transform.analysis(indicator)[0].real, expected)
    assert np.isclose(transform.mean(indicator), expected)


# ==================================================================== #
#                       Comparisons with pyshtools                     #
# ==================================================================== #


def test_synthesis_matches_pyshtools():
    """Synthesis agrees with point evaluation of pyshtools coefficients."""
    transform = SHTransform(GaussLegendreGrid(8))
    coeffs = random_coefficients(transform, seed=4)
    field = transform.synthesis(coeffs)
    lats, lons = transform.grid.meshgrid()
    expected = packed_to_shcoeffs(coeffs).expand(
        lat=lats.ravel(), lon=lons.ravel(), degrees=True
    )
    assert np.allclose(field.ravel(), expected)


def test_synthesis_on_other_nodes():
    """Precomputed Legendre functions give values on arbitrary grids."""
    transform = SHTransform(GaussLegendreGrid(8))
    coeffs = random_coefficients(transform, seed=5)

    colatitudes = np.array([0.0, 12.5, 47.0, 90.0, 133.0, 180.0])
    longitudes = np.array([0.0, 33.0, 180.0, 275.5])
    legendre = transform.legendre_functions(colatitudes)
    field = transform.synthesis(coeffs, legendre=legendre, longitudes=longitudes)
    assert field.shape == (colatitudes.size, longitudes.size)

    lons, colats = np.meshgrid(longitudes, colatitudes)
    expected = packed_to_shcoeffs(coeffs).expand(
        lat=(90.0 - colats).ravel(), lon=lons.ravel(), degrees=True
    )
    assert np.allclose(field.ravel(), expected)


def test_other_nodes_default_longitudes():
    """Without longitudes, the native longitudes are used."""
    transform = SHTransform(GaussLegendreGrid(6))
    coeffs = random_coefficients(transform, seed=6)
    legendre = transform.legendre_functions(transform.grid.colatitudes)
    assert np.allclose(
        transform.synthesis(coeffs, legendre=legendre), transform.synthesis(coeffs)
    )


# ==================================================================== #
#                             Error handling                           #
# ==================================================================== #


def test_lmax_larger_than_grid():
    """The truncation degree cannot exceed that of the grid."""
    with pytest.raises(ValueError, match="is larger than the maximum degree"):
        SHTransform(GaussLegendreGrid(4), lmax=5)


def test_wrong_field_shape():
    """Fields not on the grid are rejected."""
    transform = SHTransform(GaussLegendreGrid(4))
    with pytest.raises(ValueError):
        transform.analysis(np.zeros((3, 4)))


def test_wrong_coefficient_size():
    """Coefficient vectors of the wrong length are rejected."""
    transform = SHTransform(GaussLegendreGrid(4))
    with pytest.raises(ValueError):
        transform.synthesis(np.zeros(transform.size + 1))


def test_lower_truncation():
    """A transform truncated below the grid degree still round trips."""
    transform = SHTransform(GaussLegendreGrid(10), lmax=6)
    coeffs = random_coefficients(transform, seed=7)
    assert np.allclose(transform.analysis(transform.synthesis(coeffs)), coeffs)
