"""
Module for the EarthModelParameters class that stores the physical
constants used in viscoelastic sea level calculations.

All values are in SI units.
"""

import numpy as np


# Default physical constants.
MEAN_RADIUS = 6371000.0
MASS = 5.9742e24
GRAVITATIONAL_ACCELERATION = 9.80665
GRAVITATIONAL_CONSTANT = 6.6723e-11
EQUATORIAL_MOMENT_OF_INERTIA = 8.0115e37
POLAR_MOMENT_OF_INERTIA = 8.0376e37
ROTATION_FREQUENCY = 7.292e-5
WATER_DENSITY = 1000.0
ICE_DENSITY = 920.0


class EarthModelParameters:
    """
    Class storing the physical parameters of a rotating, spherically
    symmetric Earth model, along with a few quantities derived from them.
    """

    def __init__(
        self,
        /,
        *,
        mean_radius=MEAN_RADIUS,
        mass=MASS,
        gravitational_acceleration=GRAVITATIONAL_ACCELERATION,
        gravitational_constant=GRAVITATIONAL_CONSTANT,
        equatorial_moment_of_inertia=EQUATORIAL_MOMENT_OF_INERTIA,
        polar_moment_of_inertia=POLAR_MOMENT_OF_INERTIA,
        rotation_frequency=ROTATION_FREQUENCY,
        water_density=WATER_DENSITY,
        ice_density=ICE_DENSITY,
    ):
        """
        Args:
            mean_radius (float): Mean radius of the Earth in m.
            mass (float): Mass of the Earth in kg.
            gravitational_acceleration (float): Surface gravity in m s^-2.
            gravitational_constant (float): Newton's constant in m^3 kg^-1 s^-2.
            equatorial_moment_of_inertia (float): Principal moment A in kg m^2.
            polar_moment_of_inertia (float): Principal moment C in kg m^2.
            rotation_frequency (float): Mean rotation rate in rad s^-1.
            water_density (float): Density of water in kg m^-3.
            ice_density (float): Density of ice in kg m^-3.

        Raises:
            ValueError: If any parameter is not positive, or if the polar
                moment of inertia does not exceed the equatorial one.
        """

        values = {
            "mean_radius": mean_radius,
            "mass": mass,
            "gravitational_acceleration": gravitational_acceleration,
            "gravitational_constant": gravitational_constant,
            "equatorial_moment_of_inertia": equatorial_moment_of_inertia,
            "polar_moment_of_inertia": polar_moment_of_inertia,
            "rotation_frequency": rotation_frequency,
            "water_density": water_density,
            "ice_density": ice_density,
        }
        for name, value in values.items():
            if not value > 0:
                raise ValueError(f"{name} must be positive, got {value}")

        if polar_moment_of_inertia <= equatorial_moment_of_inertia:
            raise ValueError(
                "polar_moment_of_inertia must exceed equatorial_moment_of_inertia"
            )

        self._mean_radius = float(mean_radius)
        self._mass = float(mass)
        self._gravitational_acceleration = float(gravitational_acceleration)
        self._gravitational_constant = float(gravitational_constant)
        self._equatorial_moment_of_inertia = float(equatorial_moment_of_inertia)
        self._polar_moment_of_inertia = float(polar_moment_of_inertia)
        self._rotation_frequency = float(rotation_frequency)
        self._water_density = float(water_density)
        self._ice_density = float(ice_density)

    # ------------------------------------------------#
    #                 Physical constants              #
    # ------------------------------------------------#

    @property
    def mean_radius(self):
        """Return the mean radius of the Earth."""
        return self._mean_radius

    @property
    def mass(self):
        """Return the mass of the Earth."""
        return self._mass

    @property
    def gravitational_acceleration(self):
        """Return the surface gravitational acceleration."""
        return self._gravitational_acceleration

    @property
    def gravitational_constant(self):
        """Return the gravitational constant."""
        return self._gravitational_constant

    @property
    def equatorial_moment_of_inertia(self):
        """Return the equatorial moment of inertia, A."""
        return self._equatorial_moment_of_inertia

    @property
    def polar_moment_of_inertia(self):
        """Return the polar moment of inertia, C."""
        return self._polar_moment_of_inertia

    @property
    def rotation_frequency(self):
        """Return the mean rotation rate."""
        return self._rotation_frequency

    @property
    def water_density(self):
        """Return the density of water."""
        return self._water_density

    @property
    def ice_density(self):
        """Return the density of ice."""
        return self._ice_density

    # ------------------------------------------------#
    #                Derived quantities               #
    # ------------------------------------------------#

    @property
    def density_ratio(self):
        """Return the ratio of ice density to water density."""
        return self.ice_density / self.water_density

    @property
    def fluid_love_number(self):
        """
        Return the degree-2 fluid (secular) Love number,
        k_f = 3G(C - A) / (a^5 Omega^2).
        """
        return (
            3
            * self.gravitational_constant
            * (self.polar_moment_of_inertia - self.equatorial_moment_of_inertia)
            / (self.mean_radius**5 * self.rotation_frequency**2)
        )

    @property
    def surface_area(self):
        """Return the surface area of the Earth."""
        return 4 * np.pi * self.mean_radius**2

    def copy_parameters(self):
        """Return the keyword arguments needed to rebuild these parameters."""
        return {
            "mean_radius": self.mean_radius,
            "mass": self.mass,
            "gravitational_acceleration": self.gravitational_acceleration,
            "gravitational_constant": self.gravitational_constant,
            "equatorial_moment_of_inertia": self.equatorial_moment_of_inertia,
            "polar_moment_of_inertia": self.polar_moment_of_inertia,
            "rotation_frequency": self.rotation_frequency,
            "water_density": self.water_density,
            "ice_density": self.ice_density,
        }
