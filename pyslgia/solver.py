"""
Module for the SeaLevelSolver class that solves the sea level equation
on a rotating, self-gravitating, viscoelastic Earth for a given history
of ice thickness, optionally including proglacial lakes.

The solution proceeds through three nested loops. The outer loop adjusts
the initial topography until the solved present-day topography matches
the observed one. The middle loop steps forward through the ice history.
The inner loop iterates the sea level equation at each time step until
the sea surface height is self-consistent with the ocean function, the
Earth's deformation and the rotational perturbation.
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

import numpy as np

from pyslgia.grid import GaussLegendreGrid
from pyslgia.lakes import check_lake_field
from pyslgia.love_numbers import ViscousKernel
from pyslgia.physical_parameters import EarthModelParameters
from pyslgia.rotation import ROTATION_COEFFICIENTS, RotationalFeedback, RotationState
from pyslgia.transform import SHTransform
from pyslgia.utils import ocean_function


logger = logging.getLogger(__name__)


# Default iteration settings.
MAX_ITERATIONS = 10
TOLERANCE = 1.0e-4
MAX_TOPOGRAPHY_ITERATIONS = 3
TOPOGRAPHY_TOLERANCE = 1.0

# Ocean fractions below this cannot normalise the eustatic correction.
MINIMUM_OCEAN_AREA = 1.0e-10


class OceanAreaError(ValueError):
    """Raised when the ocean area vanishes at some time step."""

    def __init__(self, message, time_index=None):
        super().__init__(message)
        self.time_index = time_index


class StepStatus(enum.Enum):
    """Status of the inner iteration at one time step."""

    INITIALIZING = "initializing"
    ITERATING = "iterating"
    CONVERGED = "converged"
    ITERATION_LIMIT_REACHED = "iteration_limit_reached"


class TopographyStatus(enum.Enum):
    """Status of the outer topography iteration."""

    ITERATING = "iterating"
    CONVERGED = "converged"
    ITERATION_LIMIT_REACHED = "iteration_limit_reached"


@dataclass
class StepReport:
    """Record of the inner iteration at one time step."""

    time_index: int
    status: StepStatus = StepStatus.INITIALIZING
    iterations: int = 0
    chi: List[float] = field(default_factory=list)
    eustatic_correction: float = 0.0

    @property
    def converged(self):
        """True if the step met the convergence tolerance."""
        return self.status is StepStatus.CONVERGED


@dataclass
class SeaLevelHistory:
    """
    Result of a sea level calculation. Arrays have a leading time axis,
    oldest first, the last entry being the present.
    """

    times: np.ndarray
    topography: np.ndarray
    ocean_function: np.ndarray
    ice: np.ndarray
    ice_corrected: np.ndarray
    relative_sea_level: np.ndarray
    esl: np.ndarray
    gmsl: np.ndarray
    ocean_area: np.ndarray
    ice_volume_change: np.ndarray
    sea_surface_change: np.ndarray
    lakes: np.ndarray
    lakes_high_res: List[Any]
    lake_volume: np.ndarray
    lake_load: np.ndarray
    steps: List[StepReport]
    topography_status: TopographyStatus
    topography_iterations: int
    topography_misfit: List[float]

    @property
    def converged(self):
        """True if every time step converged."""
        return all(step.converged for step in self.steps)

    @property
    def topography_converged(self):
        """True if the outer topography iteration converged."""
        return self.topography_status is TopographyStatus.CONVERGED

    def sea_level_change(self, start, end):
        """Return the change in sea level between two time indices."""
        return self.relative_sea_level[end] - self.relative_sea_level[start]


def grounded_ice(ice, topography, /, *, water_density, ice_density):
    """
    Remove floating ice from an ice thickness field.

    Ice is kept where the bed lies above sea level, or where it lies
    below sea level and the ice column is heavier than the water it
    would displace. It is removed everywhere else.

    Args:
        ice (numpy array): Ice thickness.
        topography (numpy array): Topography including the ice.
        water_density (float): Density of water.
        ice_density (float): Density of ice.

    Returns:
        numpy array: The corrected ice thickness.
    """
    bed = topography - ice
    grounded = (bed > 0) | ((bed < 0) & (ice_density * ice > -bed * water_density))
    return np.where(grounded, ice, 0.0)


@dataclass
class _RunState:
    # Arrays that persist across topography passes.
    kernel: ViscousKernel
    rotation: Optional[RotationalFeedback]
    topography_present: np.ndarray
    ocean_area: float
    ice: np.ndarray
    ice_corrected: np.ndarray
    topography: np.ndarray
    high_res_ice: Any
    high_res_grid: Any
    sdelS: np.ndarray
    delP: np.ndarray
    lakes: np.ndarray
    lakes_high_res: List[Any]
    lake_volume: np.ndarray
    esl: np.ndarray
    sdeli00: np.ndarray
    delS: np.ndarray
    steps: List[Optional[StepReport]]


@dataclass
class _PassState:
    # Values carried from one time step to the next within a pass.
    delL_prev: np.ndarray
    delS_prev: np.ndarray
    TO_prev: np.ndarray
    delLa_prev: np.ndarray
    deli00_prev: float
    sdelL: np.ndarray
    sdelLa: np.ndarray
    rotation: RotationState
    topography_with_lakes: np.ndarray
    ocean_function: np.ndarray
    ocj_lm_prev: np.ndarray

    @classmethod
    def empty(cls, n_times, n_coeffs, shape):
        return cls(
            delL_prev=np.zeros(n_coeffs, dtype=complex),
            delS_prev=np.zeros(n_coeffs, dtype=complex),
            TO_prev=np.zeros(n_coeffs, dtype=complex),
            delLa_prev=np.zeros(n_coeffs, dtype=complex),
            deli00_prev=0.0,
            sdelL=np.zeros((n_times, n_coeffs), dtype=complex),
            sdelLa=np.zeros((n_times, n_coeffs), dtype=complex),
            rotation=RotationState.empty(n_times),
            topography_with_lakes=np.zeros(shape),
            ocean_function=np.zeros(shape),
            ocj_lm_prev=np.zeros(n_coeffs, dtype=complex),
        )


def _relative_change(new, old):
    # Relative change in the L1 norm of two coefficient vectors.
    old_norm = np.sum(np.abs(old))
    new_norm = np.sum(np.abs(new))
    if old_norm == 0:
        return 0.0 if new_norm == 0 else np.inf
    return abs(new_norm - old_norm) / old_norm


class SeaLevelSolver(EarthModelParameters):
    """
    Class for solving the sea level equation for a history of ice
    thickness changes on a viscoelastic Earth.

    Initialisation sets up the spatial grid, the spherical harmonic
    transform and the iteration options. The ice history and bedrock
    topography are given to the solve method, which can be called any
    number of times; no state is shared between calls.
    """

    def __init__(
        self,
        love_numbers,
        /,
        *,
        grid=None,
        earth_model_parameters=None,
        include_rotation=True,
        include_ice_check=True,
        lake_model=None,
        sampling_factor=1,
        max_iterations=MAX_ITERATIONS,
        tolerance=TOLERANCE,
        max_topography_iterations=MAX_TOPOGRAPHY_ITERATIONS,
        topography_tolerance=TOPOGRAPHY_TOLERANCE,
    ):
        """
        Args:
            love_numbers (LoveNumbers): Love numbers of the Earth model.
                Their truncation degree sets that of the calculation.
            grid (GaussLegendreGrid): Spatial grid. If None, the grid for
                the truncation degree of the Love numbers is used.
            earth_model_parameters (EarthModelParameters): Physical
                parameters. Those of the Love numbers are used if None.
            include_rotation (bool): If True, rotational feedback is
                included. Default is True.
            include_ice_check (bool): If True, floating ice is removed
                from the ice history. Default is True.
            lake_model (LakeModel): Callable used to find proglacial
                lakes. Lakes are not included if None.
            sampling_factor (int): Resolution factor passed to the lake
                model.
            max_iterations (int): Maximum number of iterations of the sea
                level equation at each time step.
            tolerance (float): Convergence tolerance on the relative change
                of the sea surface height coefficients.
            max_topography_iterations (int): Maximum number of passes of
                the topography iteration.
            topography_tolerance (float): Convergence tolerance, in metres,
                on the present-day topography.

        Raises:
            ValueError: If an option is out of range, or the grid does not
                resolve the truncation degree.
        """

        if earth_model_parameters is None:
            earth_model_parameters = love_numbers.earth_model_parameters
        super().__init__(**earth_model_parameters.copy_parameters())

        lmax = love_numbers.lmax
        if lmax < 1:
            raise ValueError(f"lmax must be at least 1, got {lmax}")
        if grid is None:
            grid = GaussLegendreGrid(lmax)
        if include_rotation and lmax < 2:
            raise ValueError("rotational feedback requires lmax >= 2")

        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        if not tolerance > 0:
            raise ValueError("tolerance must be positive")
        if max_topography_iterations < 1:
            raise ValueError("max_topography_iterations must be at least 1")
        if not topography_tolerance > 0:
            raise ValueError("topography_tolerance must be positive")
        if sampling_factor < 1:
            raise ValueError("sampling_factor must be at least 1")

        self._love_numbers = love_numbers
        self._grid = grid
        self._transform = SHTransform(grid, lmax=lmax)

        self._include_rotation = include_rotation
        self._include_ice_check = include_ice_check
        self._lake_model = lake_model
        self._sampling_factor = sampling_factor
        self._max_iterations = max_iterations
        self._tolerance = tolerance
        self._max_topography_iterations = max_topography_iterations
        self._topography_tolerance = topography_tolerance

        # Per-coefficient response factors.
        packing = self._transform.packing
        self._degrees = packing.degrees
        self._E = packing.expand_by_degree(love_numbers.E)
        self._E_tide = packing.expand_by_degree(love_numbers.E_tide)
        self._T = packing.expand_by_degree(love_numbers.T)

    # -----------------------------------------------#
    #                   Properties                   #
    # -----------------------------------------------#

    @property
    def lmax(self):
        """Return the truncation degree."""
        return self._transform.lmax

    @property
    def grid(self):
        """Return the spatial grid."""
        return self._grid

    @property
    def transform(self):
        """Return the spherical harmonic transform."""
        return self._transform

    @property
    def love_numbers(self):
        """Return the Love numbers."""
        return self._love_numbers

    @property
    def include_rotation(self):
        """True if rotational feedback is included."""
        return self._include_rotation

    @property
    def include_ice_check(self):
        """True if floating ice is removed."""
        return self._include_ice_check

    @property
    def include_lakes(self):
        """True if proglacial lakes are included."""
        return self._lake_model is not None

    @property
    def max_iterations(self):
        """Return the iteration limit at each time step."""
        return self._max_iterations

    @property
    def tolerance(self):
        """Return the convergence tolerance at each time step."""
        return self._tolerance

    @property
    def max_topography_iterations(self):
        """Return the limit on topography passes."""
        return self._max_topography_iterations

    @property
    def topography_tolerance(self):
        """Return the convergence tolerance on present-day topography."""
        return self._topography_tolerance

    # ---------------------------------------------------------#
    #                     Private methods                     #
    # ---------------------------------------------------------#

    def _check_inputs(self, ice, times, bedrock, high_res_ice):
        # Validate the ice history, time axis and bedrock.
        ice = np.asarray(ice, dtype=float)
        times = np.asarray(times, dtype=float)
        if ice.ndim != 3 or ice.shape[1:] != self._grid.shape:
            raise ValueError(
                f"ice has shape {ice.shape}, expected (n_times, "
                f"{self._grid.nlat}, {self._grid.nlon})"
            )
        if ice.shape[0] < 2:
            raise ValueError("at least two time samples are required")
        if times.shape != (ice.shape[0],):
            raise ValueError(
                f"times has shape {times.shape}, expected ({ice.shape[0]},)"
            )
        bedrock = self._grid.check_field(bedrock, "bedrock").astype(float)
        if high_res_ice is not None and len(high_res_ice) != ice.shape[0]:
            raise ValueError("high_res_ice must have one entry per time")
        return ice, times, bedrock

    def _correct_ice(self, run):
        # Swap the corrected ice in the topography back to the given ice,
        # then recompute the floating-ice correction.
        run.topography += run.ice - run.ice_corrected
        if self._include_ice_check:
            run.ice_corrected = grounded_ice(
                run.ice,
                run.topography,
                water_density=self.water_density,
                ice_density=self.ice_density,
            )
        else:
            run.ice_corrected = run.ice.copy()
        run.topography += run.ice_corrected - run.ice

    def _update_lakes(self, run, t, topography):
        # Find lakes at time index t for a trial topography.
        anomaly = (
            topography
            - run.topography_present
            - run.ice_corrected[t]
            + run.ice_corrected[-1]
        )
        lakes, lakes_high_res = self._lake_model(
            run.high_res_ice[t],
            anomaly,
            self._grid,
            run.high_res_grid,
            self._sampling_factor,
        )
        run.lakes[t] = check_lake_field(lakes, self._grid.shape)
        run.lakes_high_res[t] = lakes_high_res
        run.delP[t] = self._transform.analysis(run.lakes[t] - run.lakes[0])

    def _start_pass(self, run, topography_initial):
        # Reset the state at the start of a topography pass.
        n_times = run.topography.shape[0]
        state = _PassState.empty(n_times, self._transform.size, self._grid.shape)

        run.topography[0] = topography_initial
        self._correct_ice(run)

        if self.include_lakes:
            self._update_lakes(run, 0, run.topography[0])
            run.delP[0] = 0.0

        state.topography_with_lakes = run.topography[0] + run.lakes[0]
        state.ocean_function = ocean_function(run.topography[0], run.lakes[0])
        state.ocj_lm_prev = self._transform.analysis(state.ocean_function)
        if state.ocj_lm_prev[0].real < MINIMUM_OCEAN_AREA:
            raise OceanAreaError("ocean area vanishes at time index 0", time_index=0)

        run.lake_volume[0] = self._transform.mean(run.lakes[0]) / run.ocean_area
        return state

    def _solve_time_step(self, run, state, t, first_pass):
        # Iterate the sea level equation at time index t.
        transform = self._transform
        density_ratio = self.density_ratio
        topography_0 = run.topography[0]

        oc_j = ocean_function(run.topography[t], run.lakes[t])
        ocj_lm = transform.analysis(oc_j)
        if ocj_lm[0].real < MINIMUM_OCEAN_AREA:
            raise OceanAreaError(
                f"ocean area vanishes at time index {t}", time_index=t
            )

        # Topography correction for the change in ocean function.
        TO_lm = transform.analysis(state.topography_with_lakes * (oc_j - state.ocean_function))

        del_ice = run.ice_corrected[t] - run.ice_corrected[0]
        deli_lm = transform.analysis(del_ice)
        deli00 = deli_lm[0].real
        sdeli00 = deli00 - state.deli00_prev

        report = StepReport(time_index=t)

        if first_pass:
            # Spread the incremental ice and lake volume over the previous ocean.
            if self.include_lakes:
                self._update_lakes(run, t, run.topography[t])
            sdelP00 = (run.delP[t, 0] - run.delP[t - 1, 0]).real
            run.sdelS[t] = state.ocj_lm_prev / state.ocj_lm_prev[0].real * (
                -density_ratio * sdeli00 + (TO_lm[0] - state.TO_prev[0]).real - sdelP00
            ) - (TO_lm - state.TO_prev)

        delLa_lm = np.zeros(transform.size, dtype=complex)
        report.status = StepStatus.ITERATING
        while report.status is StepStatus.ITERATING:
            report.iterations += 1

            delS_lm = state.delS_prev + run.sdelS[t]
            delL_lm = (
                self.ice_density * deli_lm
                + self.water_density * delS_lm
                + self.water_density * run.delP[t]
            )
            state.sdelL[t] = delL_lm - state.delL_prev

            V_lm = run.kernel.convolve(t, state.sdelL, self._degrees)
            curl_lm = self._E * self._T * delL_lm + self._T * V_lm

            if run.rotation is not None:
                delLa_lm[:ROTATION_COEFFICIENTS], _ = run.rotation(delL_lm, t, state.rotation)
                state.sdelLa[t] = delLa_lm - state.delLa_prev
                V_T_lm = np.zeros(transform.size, dtype=complex)
                V_T_lm[:ROTATION_COEFFICIENTS] = run.kernel.convolve_tidal(
                    t,
                    state.sdelLa[:, :ROTATION_COEFFICIENTS],
                    self._degrees[:ROTATION_COEFFICIENTS],
                )
                curl_lm += (self._E_tide * delLa_lm + V_T_lm) / self.gravitational_acceleration

            # The ice change is part of the topography, not of sea level.
            curl = transform.synthesis(curl_lm) - del_ice

            RO_lm = transform.analysis(curl * oc_j)
            delPhi_g = (
                (-density_ratio * deli_lm[0] - RO_lm[0] + TO_lm[0] - run.delP[t, 0])
                / ocj_lm[0]
            ).real

            sdelS_new = RO_lm + delPhi_g * ocj_lm - TO_lm - state.delS_prev
            chi = _relative_change(sdelS_new, run.sdelS[t])
            run.sdelS[t] = sdelS_new
            report.chi.append(chi)
            logger.debug("Time index %d, iteration %d: chi = %.3e", t, report.iterations, chi)

            if chi < self._tolerance:
                report.status = StepStatus.CONVERGED
            elif report.iterations >= self._max_iterations:
                report.status = StepStatus.ITERATION_LIMIT_REACHED
            elif self.include_lakes:
                self._update_lakes(run, t, -(curl + delPhi_g) + topography_0)

        report.eustatic_correction = delPhi_g
        run.lake_volume[t] = transform.mean(run.lakes[t]) / run.ocean_area
        if report.status is StepStatus.ITERATION_LIMIT_REACHED:
            logger.warning(
                "Time %g did not converge after %d iterations; chi is %.3e",
                run.kernel.times[t],
                report.iterations,
                chi,
            )
        else:
            logger.info(
                "Finished time %g after %d iterations; delPhi/g is %.6g, "
                "lake volume is %.6g",
                run.kernel.times[t],
                report.iterations,
                delPhi_g,
                run.lake_volume[t],
            )

        # Advance the state used by the next time step.
        state.delS_prev = state.delS_prev + run.sdelS[t]
        state.TO_prev = TO_lm
        state.delL_prev = delL_lm
        state.deli00_prev = deli00
        state.ocj_lm_prev = ocj_lm
        if run.rotation is not None:
            state.delLa_prev = delLa_lm.copy()

        run.delS[t] = state.delS_prev
        run.esl[t] = density_ratio * deli00 / run.ocean_area
        run.sdeli00[t] = sdeli00
        run.topography[t] = -(curl + delPhi_g) + topography_0
        run.steps[t] = report

    def _history(self, run, times, status, passes, misfits):
        # Assemble the results of a run.
        n_times = times.size
        density_ratio = self.density_ratio

        oceans = np.array(
            [ocean_function(run.topography[t], run.lakes[t]) for t in range(n_times)]
        )
        areas = np.array([self._transform.mean(oc) for oc in oceans])

        surface = run.topography - run.ice_corrected
        relative_sea_level = surface[-1] - surface

        esl = -(run.esl - run.esl[-1])

        # Accumulate the incremental ice volume from the present backwards.
        gmsl = np.zeros(n_times)
        for t in range(n_times - 2, -1, -1):
            gmsl[t] = gmsl[t + 1] + density_ratio * run.sdeli00[t + 1] / areas[t]

        ice_volume_change = np.array(
            [self._transform.mean(run.ice_corrected[t] - run.ice_corrected[0]) for t in range(n_times)]
        )

        return SeaLevelHistory(
            times=times,
            topography=run.topography,
            ocean_function=oceans,
            ice=run.ice,
            ice_corrected=run.ice_corrected,
            relative_sea_level=relative_sea_level,
            esl=esl,
            gmsl=gmsl,
            ocean_area=areas,
            ice_volume_change=ice_volume_change,
            sea_surface_change=run.delS,
            lakes=run.lakes,
            lakes_high_res=run.lakes_high_res,
            lake_volume=run.lake_volume,
            lake_load=run.delP,
            steps=list(run.steps[1:]),
            topography_status=status,
            topography_iterations=passes,
            topography_misfit=misfits,
        )

    # --------------------------------------------------------#
    #                       Public methods                    #
    # --------------------------------------------------------#

    def solve(self, ice, times, bedrock, /, *, high_res_ice=None, high_res_grid=None):
        """
        Solve the sea level equation for a history of ice thickness.

        Args:
            ice (numpy array): Ice thickness in metres, shape
                (n_times, nlat, nlon), oldest first. The last entry is the
                present day.
            times (numpy array): Times of the ice samples, oldest first,
                in units consistent with the viscous relaxation rates.
            bedrock (numpy array): Present-day bedrock topography in
                metres. The present-day topography is this plus the
                present-day ice.
            high_res_ice (sequence): Ice thickness on the high resolution
                grid used by the lake model, one entry per time. The
                coarse ice is used if None.
            high_res_grid: Opaque description of the high resolution grid,
                passed to the lake model.

        Returns:
            SeaLevelHistory: The solution.

        Raises:
            ValueError: If the inputs are inconsistent.
            OceanAreaError: If the ocean area vanishes at some time.
        """
        ice, times, bedrock = self._check_inputs(ice, times, bedrock, high_res_ice)
        n_times = times.size
        n_coeffs = self._transform.size
        shape = self._grid.shape

        kernel = ViscousKernel(self._love_numbers, times)
        rotation = None
        if self._include_rotation:
            rotation = RotationalFeedback(
                self._love_numbers,
                kernel,
                earth_model_parameters=self,
            )

        topography_present = bedrock + ice[-1]
        ocean_area = self._transform.mean(ocean_function(topography_present))
        if ocean_area < MINIMUM_OCEAN_AREA:
            raise OceanAreaError(
                "present-day ocean area must be positive", time_index=n_times - 1
            )

        run = _RunState(
            kernel=kernel,
            rotation=rotation,
            topography_present=topography_present,
            ocean_area=ocean_area,
            ice=ice,
            ice_corrected=ice.copy(),
            topography=topography_present - ice[-1] + ice,
            high_res_ice=ice if high_res_ice is None else high_res_ice,
            high_res_grid=high_res_grid,
            sdelS=np.zeros((n_times, n_coeffs), dtype=complex),
            delP=np.zeros((n_times, n_coeffs), dtype=complex),
            lakes=np.zeros((n_times,) + shape),
            lakes_high_res=[None] * n_times,
            lake_volume=np.zeros(n_times),
            esl=np.zeros(n_times),
            sdeli00=np.zeros(n_times),
            delS=np.zeros((n_times, n_coeffs), dtype=complex),
            steps=[None] * n_times,
        )

        topography_initial = run.topography[0].copy()
        status = TopographyStatus.ITERATING
        passes = 0
        misfits = []
        while status is TopographyStatus.ITERATING:
            passes += 1
            state = self._start_pass(run, topography_initial)
            for t in range(1, n_times):
                self._solve_time_step(run, state, t, passes == 1)

            target = topography_present - ice[-1] + run.ice_corrected[-1]
            misfit = float(np.max(np.abs(run.topography[-1] - target)))
            misfits.append(misfit)
            topography_initial = target - (run.topography[-1] - run.topography[0])

            if misfit < self._topography_tolerance:
                status = TopographyStatus.CONVERGED
                logger.info(
                    "Topography converged after %d passes; misfit is %.4g m",
                    passes,
                    misfit,
                )
            elif passes >= self._max_topography_iterations:
                status = TopographyStatus.ITERATION_LIMIT_REACHED
                logger.warning(
                    "Topography not converged after %d passes; misfit is %.4g m",
                    passes,
                    misfit,
                )
            else:
                logger.info("Topography pass %d; misfit is %.4g m", passes, misfit)

        return self._history(run, times, status, passes, misfits)
