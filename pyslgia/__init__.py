from pyslgia.physical_parameters import EarthModelParameters
from pyslgia.grid import GaussLegendreGrid
from pyslgia.utils import TriangularIndex, ocean_function
from pyslgia.transform import SHTransform
from pyslgia.love_numbers import LoveNumbers, ViscousModes, ViscousKernel
from pyslgia.rotation import RotationalFeedback, RotationState
from pyslgia.lakes import LakeModel
from pyslgia.solver import (
    SeaLevelSolver,
    SeaLevelHistory,
    StepReport,
    StepStatus,
    TopographyStatus,
    OceanAreaError,
    grounded_ice,
)
from pyslgia.logging_config import setup_logging
