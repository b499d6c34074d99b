import pytest
import numpy as np
from pyslgia.physical_parameters import (
    EarthModelParameters,
    MEAN_RADIUS,
    MASS,
    WATER_DENSITY,
    ICE_DENSITY,
    POLAR_MOMENT_OF_INERTIA,
    EQUATORIAL_MOMENT_OF_INERTIA,
)


def test_default_initialization():
    """
    Tests that the EarthModelParameters class initializes with the
    default SI values.
    """
    params = EarthModelParameters()

    assert params.mean_radius == MEAN_RADIUS
    assert params.mass == MASS
    assert params.water_density == WATER_DENSITY
    assert params.ice_density == ICE_DENSITY
    assert params.polar_moment_of_inertia == POLAR_MOMENT_OF_INERTIA
    assert params.equatorial_moment_of_inertia == EQUATORIAL_MOMENT_OF_INERTIA


def test_custom_initialization():
    """
    Tests that the class can be initialized with custom physical parameters.
    """
    params = EarthModelParameters(mean_radius=7.0e6, mass=6.0e24)

    assert params.mean_radius == 7.0e6
    assert params.mass == 6.0e24


def test_density_ratio():
    """The density ratio is that of ice to water."""
    params = EarthModelParameters()
    assert np.isclose(params.density_ratio, 0.92)


def test_fluid_love_number():
    """
    The fluid Love number for the default parameters is close to the
    observed value of about 0.94.
    """
    params = EarthModelParameters()
    assert 0.9 < params.fluid_love_number < 1.0


def test_copy_parameters_round_trip():
    """Parameters rebuilt from copy_parameters match the originals."""
    params = EarthModelParameters(water_density=1028.0)
    copy = EarthModelParameters(**params.copy_parameters())
    assert copy.copy_parameters() == params.copy_parameters()


@pytest.mark.parametrize(
    "name", ["mean_radius", "mass", "water_density", "ice_density"]
)
def test_non_positive_values_rejected(name):
    """Non-positive physical parameters raise a ValueError."""
    with pytest.raises(ValueError, match=f"{name} must be positive"):
        EarthModelParameters(**{name: 0.0})


def test_moments_of_inertia_ordering():
    """The polar moment of inertia must exceed the equatorial one."""
    with pytest.raises(ValueError, match="must exceed"):
        EarthModelParameters(
            equatorial_moment_of_inertia=8.0e37, polar_moment_of_inertia=7.9e37
        )
