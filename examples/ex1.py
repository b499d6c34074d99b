import logging

import numpy as np
from pyslgia import GaussLegendreGrid, LoveNumbers, SeaLevelSolver, setup_logging


setup_logging(logging.INFO)

# 1. Set up simple Love numbers for an elastic Earth.
# lmax sets the spherical harmonic resolution.
lmax = 32
l = np.arange(lmax + 1)
love_numbers = LoveNumbers(
    lmax,
    h=-(1.0 + 0.05 * l),
    k=-0.6 / np.maximum(l, 1),
    h_tide=0.6 * np.ones(lmax + 1),
    k_tide=0.3 * np.ones(lmax + 1),
)

# 2. Build an ice history in which a polar cap of 2 km melts in two steps.
grid = GaussLegendreGrid(lmax)
lats, lons = grid.meshgrid()
cap = np.where(lats > 70.0, 1.0, 0.0)
ice = np.array([2000.0 * cap, 1000.0 * cap, 0.0 * cap])
times = np.array([-20.0, -10.0, 0.0])

# 3. The bedrock is a uniform ocean floor with a continent near the equator.
bedrock = np.where(np.abs(lats) < 20.0, 300.0, -4000.0)

# 4. Solve the sea level equation including rotational feedback.
solver = SeaLevelSolver(love_numbers)
history = solver.solve(ice, times, bedrock)

# 5. Report the global results.
for t, time in enumerate(history.times):
    print(
        f"time {time:6.1f}: esl {history.esl[t]:8.3f} m, "
        f"gmsl {history.gmsl[t]:8.3f} m, ocean area {history.ocean_area[t]:.4f}"
    )

change = history.sea_level_change(0, -1)
print(f"Sea level change near the pole: {change[0].mean():.3f} m")
print(f"Sea level change at the south pole: {change[-1].mean():.3f} m")
print(f"Topography converged: {history.topography_converged}")
