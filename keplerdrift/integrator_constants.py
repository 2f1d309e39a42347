from __future__ import annotations

from .sim_config import SimConfig

"""
This module centralizes numerical constants and configuration defaults for the Kepler propagation kernel. The IntegratorConstants class sources the root-finding tolerance and iteration cap defaults from SimConfig, sets the round-off floor of the Kepler residual in units of machine epsilon, and defines the fixed parameters of the Stumpff machinery: the number of series terms, the series early-exit threshold, the quadrupling threshold, the recursion depth bound, and the length of the reciprocal factorial table. It also carries the capability flags the outer integrator selection logic reads from every interchangeable scheme. The module ensures consistent parameter usage across the solver, the Stumpff evaluators and the step driver.


"""


class IntegratorConstants:
    _cfg = SimConfig()

    KEPLER_TOLERANCE      = float(_cfg.kepler_tolerance)
    MAX_KEPLER_ITERATIONS = int(_cfg.max_kepler_iterations)
    RESIDUAL_FLOOR_ULPS   = 4.0

    SERIES_TERMS          = 13
    SERIES_REL_TOL        = 1.0e-17
    QUADRUPLING_THRESHOLD = 0.5
    MAX_QUADRUPLING_DEPTH = 64
    MAX_STUMPFF_INDEX     = 5
    INV_FACTORIAL_LEN     = 35

    # Read by scheme selection only; the Kepler drift ignores their values.
    FORCE_IS_VELOCITY_DEPENDENT = True
    EPSILON                     = 0.0
    MIN_DT                      = 0.0


__all__ = ["IntegratorConstants"]
