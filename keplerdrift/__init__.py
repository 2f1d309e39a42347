"""
This initialization file serves as the main entry point for the Kepler drift package,
exposing all public APIs through a clean namespace.

It imports and re-exports the simulation facade and state containers (Simulation,
SimulationState, Body, BodyView), configuration (SimConfig, IntegratorConstants), the
integrator and its Kepler drift scheme, the universal variable Kepler solver and its G
functions, the Stumpff function evaluators, the error hierarchy, validation, diagnostics
and two-body helper quantities, so users can import any major component directly from
the package root.
"""

from .sim_config import SimConfig
from .integrator_constants import IntegratorConstants
from .errors import (
    KeplerError,
    ConvergenceFailure,
    DegenerateOrbitError,
    StumpffIndexError,
)
from .stumpff import INV_FACTORIAL, c_n_series, c, c_quadrupled
from .kepler_solver import (
    UniversalVariableKeplerSolver,
    OrbitalInvariants,
    universal_g,
)

from .body import Body
from .body_view import BodyView
from .simulation_state import SimulationState
from .simulation_validator import SimulationValidator
from .integration_scheme_base import IntegrationScheme
from .kepler_drift_scheme import KeplerDriftScheme
from .integrator import Integrator
from .simulation import Simulation

from .diagnostics import Diagnostics
from .physics_utils import (
    specific_orbital_energy,
    energy_parameter,
    circular_velocity,
    orbital_period,
)



__all__ = [
    "SimConfig",
    "IntegratorConstants",
    "KeplerError",
    "ConvergenceFailure",
    "DegenerateOrbitError",
    "StumpffIndexError",
    "INV_FACTORIAL",
    "c_n_series",
    "c",
    "c_quadrupled",
    "UniversalVariableKeplerSolver",
    "OrbitalInvariants",
    "universal_g",
    "Body",
    "BodyView",
    "SimulationState",
    "SimulationValidator",
    "IntegrationScheme",
    "KeplerDriftScheme",
    "Integrator",
    "Simulation",
    "Diagnostics",
    "specific_orbital_energy",
    "energy_parameter",
    "circular_velocity",
    "orbital_period",
]
