"""
Module for the Love numbers of a viscoelastic Earth model and the
time-convolution kernels built from them.
"""

import logging

import numpy as np

from pyslgia.physical_parameters import EarthModelParameters


logger = logging.getLogger(__name__)

# Relaxation rates below this are rejected, including all negative rates.
MINIMUM_RELAXATION_RATE = 1.0e-12


class ViscousModes:
    """
    Viscous normal modes of an Earth model.

    For each degree, a set of relaxation rates together with the
    amplitudes of the load and tidal Love numbers associated with each
    mode. Degrees can have different numbers of modes, including none;
    internally the modes are stored in zero-padded arrays of shape
    (lmax + 1, max_modes).
    """

    def __init__(
        self,
        rates,
        /,
        *,
        h_amplitudes,
        k_amplitudes,
        h_amplitudes_tide=None,
        k_amplitudes_tide=None,
        mode_counts=None,
    ):
        """
        Args:
            rates (array): Relaxation rates with shape (lmax + 1, max_modes),
                in inverse units of the time axis used in the calculation.
                Rates are positive, so each mode decays as exp(-rate * dt).
            h_amplitudes (array): Load displacement amplitudes.
            k_amplitudes (array): Load potential amplitudes.
            h_amplitudes_tide (array): Tidal displacement amplitudes.
                Zero if None.
            k_amplitudes_tide (array): Tidal potential amplitudes.
                Zero if None.
            mode_counts (array): Number of modes used for each degree.
                All columns are used if None.

        Raises:
            ValueError: If array shapes differ, or if a relaxation rate
                in use is not positive, near zero, or not finite.
        """

        rates = np.atleast_2d(np.asarray(rates, dtype=float))
        shape = rates.shape

        def _amplitudes(values, name):
            if values is None:
                return np.zeros(shape)
            values = np.atleast_2d(np.array(values, dtype=float))
            if values.shape != shape:
                raise ValueError(
                    f"{name} has shape {values.shape}, expected {shape}"
                )
            return values

        self._h = _amplitudes(h_amplitudes, "h_amplitudes")
        self._k = _amplitudes(k_amplitudes, "k_amplitudes")
        self._h_tide = _amplitudes(h_amplitudes_tide, "h_amplitudes_tide")
        self._k_tide = _amplitudes(k_amplitudes_tide, "k_amplitudes_tide")

        if mode_counts is None:
            mode_counts = np.full(shape[0], shape[1], dtype=int)
        mode_counts = np.asarray(mode_counts, dtype=int)
        if mode_counts.shape != (shape[0],):
            raise ValueError("mode_counts must give one count per degree")
        if np.any(mode_counts < 0) or np.any(mode_counts > shape[1]):
            raise ValueError("mode_counts is out of bounds")

        # Mask out the padding so that unused entries never contribute.
        active = np.arange(shape[1])[np.newaxis, :] < mode_counts[:, np.newaxis]
        used = rates[active]
        if not np.all(np.isfinite(used)):
            raise ValueError("relaxation rates must be finite")
        if np.any(used < MINIMUM_RELAXATION_RATE):
            raise ValueError(
                "relaxation rates must be positive; "
                f"found a rate below {MINIMUM_RELAXATION_RATE} "
                "(negate tables that list the poles s_j < 0)"
            )

        self._rates = np.where(active, rates, 1.0)
        self._active = active
        self._mode_counts = mode_counts
        for amplitudes in (self._h, self._k, self._h_tide, self._k_tide):
            amplitudes[~active] = 0.0

    @staticmethod
    def from_table(rows, lmax):
        """
        Build the modes from a table with one row per mode.

        Args:
            rows (array): Rows of the form
                (degree, rate, h_amp, k_amp, h_amp_tide, k_amp_tide).
            lmax (int): Maximum degree to keep. Rows of higher degree are
                ignored and degrees without rows have no modes.

        Returns:
            ViscousModes: The modes.
        """
        rows = np.asarray(rows, dtype=float)
        if rows.size == 0:
            rows = np.zeros((0, 6))
        rows = np.atleast_2d(rows)
        if rows.shape[1] != 6:
            raise ValueError("mode table must have six columns")

        degrees = rows[:, 0].astype(int)
        keep = degrees <= lmax
        rows, degrees = rows[keep], degrees[keep]

        counts = np.bincount(degrees, minlength=lmax + 1)
        width = max(int(counts.max()) if counts.size else 0, 1)
        arrays = np.zeros((5, lmax + 1, width))
        filled = np.zeros(lmax + 1, dtype=int)
        for degree, row in zip(degrees, rows):
            j = filled[degree]
            arrays[:, degree, j] = row[1:]
            filled[degree] += 1

        return ViscousModes(
            arrays[0],
            h_amplitudes=arrays[1],
            k_amplitudes=arrays[2],
            h_amplitudes_tide=arrays[3],
            k_amplitudes_tide=arrays[4],
            mode_counts=counts,
        )

    @property
    def lmax(self):
        """Return the maximum degree."""
        return self._rates.shape[0] - 1

    @property
    def mode_counts(self):
        """Return the number of modes at each degree."""
        return self._mode_counts.copy()

    @property
    def rates(self):
        """Return the padded relaxation rates."""
        return self._rates

    @property
    def h(self):
        """Return the load displacement amplitudes."""
        return self._h

    @property
    def k(self):
        """Return the load potential amplitudes."""
        return self._k

    @property
    def h_tide(self):
        """Return the tidal displacement amplitudes."""
        return self._h_tide

    @property
    def k_tide(self):
        """Return the tidal potential amplitudes."""
        return self._k_tide

    def truncate(self, lmax):
        """Return the modes up to a given degree."""
        if lmax > self.lmax:
            raise ValueError(
                f"lmax = {lmax} is larger than the maximum degree "
                f"of the modes, {self.lmax}"
            )
        return ViscousModes(
            self._rates[: lmax + 1],
            h_amplitudes=self._h[: lmax + 1],
            k_amplitudes=self._k[: lmax + 1],
            h_amplitudes_tide=self._h_tide[: lmax + 1],
            k_amplitudes_tide=self._k_tide[: lmax + 1],
            mode_counts=self._mode_counts[: lmax + 1],
        )

    def relaxation(self, amplitudes, elapsed):
        """
        Return sum_j amplitudes[l, j] / rate[l, j] * (1 - exp(-rate[l, j] * dt))
        for every elapsed time dt and degree l.

        Args:
            amplitudes (array): Amplitudes with the padded mode shape.
            elapsed (array): Elapsed times, shape (n,).

        Returns:
            numpy array: Values with shape (n, lmax + 1).
        """
        elapsed = np.asarray(elapsed, dtype=float)
        decay = -np.expm1(-self._rates[np.newaxis, :, :] * elapsed[:, np.newaxis, np.newaxis])
        return np.sum(amplitudes / self._rates * decay, axis=-1)


class LoveNumbers:
    """
    Elastic Love numbers, optional viscous modes, and the per-degree
    transfer coefficients used in the sea level equation.
    """

    def __init__(
        self,
        lmax,
        /,
        *,
        h,
        k,
        h_tide,
        k_tide,
        viscous_modes=None,
        earth_model_parameters=None,
    ):
        """
        Args:
            lmax (int): Truncation degree.
            h (array): Elastic load Love numbers h_l, indexed from l = 0.
            k (array): Elastic load Love numbers k_l, indexed from l = 0.
            h_tide (array): Elastic tidal Love numbers.
            k_tide (array): Elastic tidal Love numbers.
            viscous_modes (ViscousModes): Viscous normal modes. If None,
                the Earth model is purely elastic.
            earth_model_parameters (EarthModelParameters): Physical
                parameters. Defaults are used if None.

        Raises:
            ValueError: If lmax is larger than the degree of any table.
        """

        if earth_model_parameters is None:
            earth_model_parameters = EarthModelParameters()
        self._parameters = earth_model_parameters
        self._lmax = lmax

        tables = {"h": h, "k": k, "h_tide": h_tide, "k_tide": k_tide}
        for name, values in tables.items():
            values = np.asarray(values, dtype=float)
            if values.ndim != 1:
                raise ValueError(f"{name} must be one-dimensional")
            if lmax > values.size - 1:
                raise ValueError(
                    f"lmax = {lmax} is larger than the maximum degree "
                    f"of {name}, {values.size - 1}"
                )
            tables[name] = values[: lmax + 1].copy()

        # Degree-0 Love numbers vanish for a mass-conserving load.
        for values in tables.values():
            values[0] = 0.0

        self._h = tables["h"]
        self._k = tables["k"]
        self._h_tide = tables["h_tide"]
        self._k_tide = tables["k_tide"]

        if viscous_modes is not None:
            viscous_modes = viscous_modes.truncate(lmax)
        self._modes = viscous_modes

        a = self._parameters.mean_radius
        M = self._parameters.mass
        degrees = np.arange(lmax + 1)
        self._T = 4 * np.pi * a**3 / (M * (2 * degrees + 1))
        self._T[: min(2, lmax + 1)] = 0.0

    @staticmethod
    def from_files(
        lmax, elastic_file, /, *, modes_file=None, earth_model_parameters=None
    ):
        """
        Read Love numbers from whitespace-delimited text files.

        Args:
            lmax (int): Truncation degree.
            elastic_file (str): File with columns l, h, k, h_tide, k_tide,
                one row per degree starting at l = 0.
            modes_file (str): Optional file with columns
                l, rate, h_amp, k_amp, h_amp_tide, k_amp_tide,
                one row per mode.
            earth_model_parameters (EarthModelParameters): Physical
                parameters.

        Returns:
            LoveNumbers: The Love numbers.
        """
        data = np.loadtxt(elastic_file, ndmin=2)
        if data.shape[1] < 5:
            raise ValueError("elastic Love number file must have five columns")
        if not np.array_equal(data[:, 0], np.arange(data.shape[0])):
            raise ValueError("elastic Love number file must list degrees from 0")

        modes = None
        if modes_file is not None:
            modes = ViscousModes.from_table(np.loadtxt(modes_file, ndmin=2), lmax)

        logger.debug("Read Love numbers from %s", elastic_file)
        return LoveNumbers(
            lmax,
            h=data[:, 1],
            k=data[:, 2],
            h_tide=data[:, 3],
            k_tide=data[:, 4],
            viscous_modes=modes,
            earth_model_parameters=earth_model_parameters,
        )

    # -----------------------------------------------#
    #                   Properties                   #
    # -----------------------------------------------#

    @property
    def lmax(self):
        """Return the truncation degree."""
        return self._lmax

    @property
    def earth_model_parameters(self):
        """Return the physical parameters."""
        return self._parameters

    @property
    def h(self):
        """Return the elastic load Love numbers h."""
        return self._h

    @property
    def k(self):
        """Return the elastic load Love numbers k."""
        return self._k

    @property
    def h_tide(self):
        """Return the elastic tidal Love numbers h."""
        return self._h_tide

    @property
    def k_tide(self):
        """Return the elastic tidal Love numbers k."""
        return self._k_tide

    @property
    def viscous_modes(self):
        """Return the viscous modes, or None for an elastic model."""
        return self._modes

    @property
    def is_elastic(self):
        """True if there are no viscous modes."""
        return self._modes is None

    @property
    def E(self):
        """Return the load response, 1 + k - h, for each degree."""
        return 1 + self._k - self._h

    @property
    def E_tide(self):
        """Return the tidal response, 1 + k_tide - h_tide, for each degree."""
        return 1 + self._k_tide - self._h_tide

    @property
    def T(self):
        """
        Return the transfer coefficients 4 pi a^3 / (M (2l + 1)), which map
        a surface mass load to the equivalent sea level. Degrees 0 and 1
        are set to zero.
        """
        return self._T

    def elastic_only(self):
        """Return a copy of the Love numbers without the viscous modes."""
        return LoveNumbers(
            self.lmax,
            h=self._h,
            k=self._k,
            h_tide=self._h_tide,
            k_tide=self._k_tide,
            earth_model_parameters=self._parameters,
        )


class ViscousKernel:
    """
    Precomputed time-convolution weights ("beta") for a viscoelastic
    Earth model and a given time axis.

    For current step t and earlier step n, with 1 <= n < t,

        beta[t, n, l] = sum_j (k_amp - h_amp) / rate
                        * (1 - exp(-rate * |time[t] - time[n]|)),

    and zero otherwise. Step 0 is the reference state and carries no
    load increment. The tidal kernel uses the tidal amplitudes, while the
    k-only kernels keep the degree-2 potential amplitudes used for the
    rotational feedback.
    """

    def __init__(self, love_numbers, times):
        """
        Args:
            love_numbers (LoveNumbers): The Love numbers.
            times (array): Monotonic time axis, oldest sample first, in
                units consistent with the relaxation rates.

        Raises:
            ValueError: If there are fewer than two times, or the times
                are not strictly monotonic.
        """
        times = np.asarray(times, dtype=float)
        if times.ndim != 1 or times.size < 2:
            raise ValueError("at least two time samples are required")
        steps = np.diff(times)
        if not (np.all(steps > 0) or np.all(steps < 0)):
            raise ValueError("times must be strictly monotonic")

        self._times = times
        self._lmax = love_numbers.lmax
        n_times = times.size

        self._beta = np.zeros((n_times, n_times, self._lmax + 1))
        self._beta_tide = np.zeros_like(self._beta)
        self._beta_konly = np.zeros((n_times, n_times))
        self._beta_konly_tide = np.zeros((n_times, n_times))

        modes = love_numbers.viscous_modes
        if modes is None:
            return

        load = modes.k - modes.h
        tide = modes.k_tide - modes.h_tide
        for t in range(2, n_times):
            elapsed = np.abs(times[t] - times[1:t])
            self._beta[t, 1:t, :] = modes.relaxation(load, elapsed)
            self._beta_tide[t, 1:t, :] = modes.relaxation(tide, elapsed)
            if self._lmax >= 2:
                self._beta_konly[t, 1:t] = modes.relaxation(modes.k, elapsed)[:, 2]
                self._beta_konly_tide[t, 1:t] = modes.relaxation(
                    modes.k_tide, elapsed
                )[:, 2]

        logger.debug(
            "Built viscous kernels for %d times and lmax = %d", n_times, self._lmax
        )

    @property
    def times(self):
        """Return the time axis."""
        return self._times

    @property
    def beta(self):
        """Return the load kernel, shape (n_times, n_times, lmax + 1)."""
        return self._beta

    @property
    def beta_tide(self):
        """Return the tidal kernel, shape (n_times, n_times, lmax + 1)."""
        return self._beta_tide

    @property
    def beta_konly(self):
        """Return the degree-2 load potential kernel, shape (n_times, n_times)."""
        return self._beta_konly

    @property
    def beta_konly_tide(self):
        """Return the degree-2 tidal potential kernel, shape (n_times, n_times)."""
        return self._beta_konly_tide

    def convolve(self, t, history, degrees):
        """
        Return the viscous response at step t to an incremental history.

        Args:
            t (int): Current time index.
            history (numpy array): Incremental packed coefficients, shape
                (n_times, n_coeffs). Only rows before t are used.
            degrees (numpy array): Degree of each packed entry.

        Returns:
            numpy array: Packed viscous response.
        """
        return np.einsum("nk,nk->k", self._beta[t, :t, :][:, degrees], history[:t])

    def convolve_tidal(self, t, history, degrees):
        """As convolve, but using the tidal kernel."""
        return np.einsum(
            "nk,nk->k", self._beta_tide[t, :t, :][:, degrees], history[:t]
        )

    def convolve_rotation(self, t, history):
        """Return the k-only load convolution of a (n_times, ...) history."""
        return np.tensordot(self._beta_konly[t, :t], history[:t], axes=1)

    def convolve_rotation_tidal(self, t, history):
        """Return the k-only tidal convolution of a (n_times, ...) history."""
        return np.tensordot(self._beta_konly_tide[t, :t], history[:t], axes=1)
