from __future__ import annotations
from dataclasses import dataclass

"""
This central configuration module defines all propagation parameters through the SimConfig dataclass. Key parameters include the fixed step size, integrator mode selection, the root-finding policy for the universal Kepler equation, the velocity update ordering of the f-g transformation, convergence tolerance and iteration cap, the per-body failure policy of the step driver, and the energy drift threshold used by diagnostics. The class provides a copy method for configuration inheritance and validates every option against its allowed values. It serves as the single source of truth for propagation behavior, with all components referencing this configuration.

"""
_ALLOWED_MODES = {
    "kepler",
}

_ALLOWED_ROOT_FINDERS = {
    "newton",
    "householder",
}

# "updated_position" reproduces the legacy order of operations where the
# velocity update reads the freshly written position.
_ALLOWED_VELOCITY_UPDATES = {
    "initial_position",
    "updated_position",
}

_ALLOWED_FAILURE_POLICIES = {
    "raise",
    "skip",
}

@dataclass
class SimConfig:
    dt: float = 0.01
    integrator_mode: str = "kepler"
    root_finder: str = "newton"
    velocity_update: str = "initial_position"
    kepler_tolerance: float = 1e-15
    max_kepler_iterations: int = 100
    on_body_failure: str = "raise"
    energy_tol_pref: float = 1e-10

    def __post_init__(self) -> None:
        if self.integrator_mode not in _ALLOWED_MODES:
            raise ValueError(f"integrator_mode must be one of {sorted(_ALLOWED_MODES)}, got {self.integrator_mode!r}")
        if self.root_finder not in _ALLOWED_ROOT_FINDERS:
            raise ValueError(f"root_finder must be one of {sorted(_ALLOWED_ROOT_FINDERS)}, got {self.root_finder!r}")
        if self.velocity_update not in _ALLOWED_VELOCITY_UPDATES:
            raise ValueError(f"velocity_update must be one of {sorted(_ALLOWED_VELOCITY_UPDATES)}, got {self.velocity_update!r}")
        if self.on_body_failure not in _ALLOWED_FAILURE_POLICIES:
            raise ValueError(f"on_body_failure must be one of {sorted(_ALLOWED_FAILURE_POLICIES)}, got {self.on_body_failure!r}")
        if not self.kepler_tolerance > 0.0:
            raise ValueError(f"kepler_tolerance must be positive, got {self.kepler_tolerance}")
        if int(self.max_kepler_iterations) < 1:
            raise ValueError(f"max_kepler_iterations must be at least 1, got {self.max_kepler_iterations}")
        if not self.energy_tol_pref > 0.0:
            raise ValueError(f"energy_tol_pref must be positive, got {self.energy_tol_pref}")

    def copy(self) -> "SimConfig":
        new = object.__new__(SimConfig)
        new.__dict__ = dict(getattr(self, "__dict__", {}))
        return new
