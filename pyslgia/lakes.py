"""
Interface to the proglacial lake model used by the sea level solver.

The solver does not prescribe how lakes are found. Any callable with the
signature of LakeModel can be supplied; it is called with the ice
thickness at a time step and the topography anomaly relative to the
present day, and must return the lake water depth on the coarse grid
along with a companion field on the high resolution grid.
"""

from typing import Any, Protocol, Tuple

import numpy as np


class LakeModel(Protocol):
    """Callable returning the lake depth for a given ice geometry."""

    def __call__(
        self,
        ice_high_res: np.ndarray,
        topography_anomaly: np.ndarray,
        grid: Any,
        high_res_grid: Any,
        sampling_factor: int,
    ) -> Tuple[np.ndarray, Any]:
        """
        Args:
            ice_high_res: Ice thickness on the high resolution grid.
            topography_anomaly: Topography minus present-day topography,
                both with the floating-ice correction applied, on the
                coarse grid.
            grid: The coarse GaussLegendreGrid.
            high_res_grid: Opaque description of the high resolution grid.
            sampling_factor: Ratio of high to coarse resolution.

        Returns:
            The lake depth on the coarse grid, zero outside lakes, and the
            lake field on the high resolution grid.
        """
        ...


def check_lake_field(lakes, shape):
    """
    Check the coarse lake field returned by a lake model.

    Raises:
        ValueError: If the field has the wrong shape or is not finite.
    """
    lakes = np.asarray(lakes, dtype=float)
    if lakes.shape != tuple(shape):
        raise ValueError(
            f"lake model returned a field of shape {lakes.shape}, "
            f"expected {tuple(shape)}"
        )
    if not np.all(np.isfinite(lakes)):
        raise ValueError("lake model returned non-finite values")
    return lakes
