"""
Module for the rotational feedback on sea level: the perturbation of the
inertia tensor by a surface load, the resulting polar motion, and the
centrifugal potential perturbation it induces.
"""

from dataclasses import dataclass

import numpy as np

from pyslgia.physical_parameters import EarthModelParameters


# Packed indices of the degree 0 and degree 2 coefficients.
_L00, _L20, _L21, _L22 = 0, 3, 4, 5

# Number of packed coefficients with l <= 2.
ROTATION_COEFFICIENTS = 6


@dataclass
class RotationState:
    """
    Running increments of the inertia tensor perturbation (sdelI) and of
    the rotation vector perturbation (sdelm). Row t holds the change
    between time steps t - 1 and t; columns are the (1, 3), (2, 3) and
    (3, 3) components, or (m1, m2, m3).
    """

    sdelI: np.ndarray
    sdelm: np.ndarray

    @classmethod
    def empty(cls, n_times):
        """Return a state with no accumulated perturbation."""
        return cls(sdelI=np.zeros((n_times, 3)), sdelm=np.zeros((n_times, 3)))

    def inertia(self, t):
        """Return the total inertia perturbation up to and including step t."""
        return self.sdelI[: t + 1].sum(axis=0)

    def polar_motion(self, t):
        """Return the total rotation vector perturbation up to step t."""
        return self.sdelm[: t + 1].sum(axis=0)


class RotationalFeedback:
    """
    Computes the rotational potential perturbation associated with a
    surface load on a viscoelastic Earth.
    """

    def __init__(self, love_numbers, kernel, /, *, earth_model_parameters=None):
        """
        Args:
            love_numbers (LoveNumbers): Love numbers, which must extend to
                at least degree 2.
            kernel (ViscousKernel): Precomputed viscous kernels.
            earth_model_parameters (EarthModelParameters): Physical
                parameters. Those of the Love numbers are used if None.
        """
        if love_numbers.lmax < 2:
            raise ValueError("rotational feedback requires lmax >= 2")

        if earth_model_parameters is None:
            earth_model_parameters = love_numbers.earth_model_parameters
        self._parameters = earth_model_parameters
        self._kernel = kernel

        self._k2 = love_numbers.k[2]
        self._k2_tide = love_numbers.k_tide[2]

        a = self._parameters.mean_radius
        self._polar_factor = 8 * np.pi * a**4 / 3
        self._product_factor = np.sqrt(32 / 15) * np.pi * a**4
        self._potential_factor = (a * self._parameters.rotation_frequency) ** 2

    @property
    def earth_model_parameters(self):
        """Return the physical parameters."""
        return self._parameters

    def inertia_perturbation(self, load_lm):
        """
        Return the perturbation of the inertia tensor due to a load.

        Args:
            load_lm (numpy array): Packed coefficients of the surface
                mass load in kg m^-2.

        Returns:
            numpy array: The (1, 3), (2, 3) and (3, 3) components in kg m^2.
        """
        return np.array(
            [
                -self._product_factor * load_lm[_L21].real,
                self._product_factor * load_lm[_L21].imag,
                self._polar_factor * (load_lm[_L00] - load_lm[_L20] / np.sqrt(5)).real,
            ]
        )

    def polar_motion(self, inertia, t, state):
        """
        Return the perturbation to the rotation vector, (m1, m2, m3).

        Args:
            inertia (numpy array): Total inertia perturbation at step t.
            t (int): Current time index.
            state (RotationState): Increments from earlier steps.
        """
        A = self._parameters.equatorial_moment_of_inertia
        C = self._parameters.polar_moment_of_inertia
        k_f = self._parameters.fluid_love_number

        viscous_inertia = self._kernel.convolve_rotation(t, state.sdelI)
        viscous_rotation = self._kernel.convolve_rotation_tidal(t, state.sdelm)

        m = np.empty(3)
        m[:2] = (
            ((1 + self._k2) * inertia[:2] + viscous_inertia[:2]) / (C - A)
            + viscous_rotation[:2] / k_f
        ) / (1 - self._k2_tide / k_f)
        m[2] = -((1 + self._k2) * inertia[2] + viscous_inertia[2]) / C
        return m

    def rotational_potential(self, m):
        """
        Return the packed l <= 2 coefficients of the centrifugal potential
        perturbation for a rotation vector perturbation m.
        """
        m1, m2, m3 = m
        w = self._potential_factor
        coeffs = np.zeros(ROTATION_COEFFICIENTS, dtype=complex)
        coeffs[_L00] = w / 3 * (m1**2 + m2**2 + m3**2 + 2 * m3)
        coeffs[_L20] = w / (6 * np.sqrt(5)) * (m1**2 + m2**2 - 2 * m3**2 - 4 * m3)
        coeffs[_L21] = -w * (1 + m3) * (m1 - 1j * m2) / np.sqrt(30)
        coeffs[_L22] = w / (2 * np.sqrt(30)) * ((m2**2 - m1**2) + 2j * m1 * m2)
        return coeffs

    def __call__(self, load_lm, t, state):
        """
        Return the rotational potential perturbation for the current load,
        recording the increments for step t in the state.

        Args:
            load_lm (numpy array): Packed coefficients of the total load
                change relative to the reference state.
            t (int): Current time index.
            state (RotationState): Running increments, updated in place.

        Returns:
            numpy array: Packed l <= 2 potential coefficients.
            RotationState: The updated state.
        """
        inertia = self.inertia_perturbation(load_lm)
        m = self.polar_motion(inertia, t, state)
        state.sdelI[t] = inertia - state.sdelI[:t].sum(axis=0)
        state.sdelm[t] = m - state.sdelm[:t].sum(axis=0)
        return self.rotational_potential(m), state
