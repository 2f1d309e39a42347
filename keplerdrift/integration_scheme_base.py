"""
This abstract base class defines the interface for integration schemes driven by the
Integrator.

The IntegrationScheme class provides the two-phase call convention the outer loop uses
for every interchangeable scheme (part1 before any force evaluation, part2 after), the
single-call advance_all equivalent, the capability flags read by scheme selection, and
access to the integrator's shared universal variable Kepler solver. Concrete schemes
override part2 (and part1 where they split the step). The class assumes the parent
integrator holds a valid simulation state and configuration.
"""

from __future__ import annotations
from typing import Dict, TYPE_CHECKING
import numpy as np

from .integrator_constants import IntegratorConstants

if TYPE_CHECKING:
    from .integrator import Integrator



class IntegrationScheme:
	force_is_velocity_dependent: bool = IntegratorConstants.FORCE_IS_VELOCITY_DEPENDENT
	epsilon: float = IntegratorConstants.EPSILON
	min_dt: float = IntegratorConstants.MIN_DT

	def __init__(self, integrator: "Integrator") -> None:
		self.integ = integrator

	@classmethod
	def capabilities(cls) -> Dict[str, object]:
		return {
			"force_is_velocity_dependent": bool(cls.force_is_velocity_dependent),
			"epsilon": float(cls.epsilon),
			"min_dt": float(cls.min_dt),
		}

	def part1(self) -> None:
		pass

	def part2(self) -> None:
		raise NotImplementedError(f"{type(self).__name__} does not implement part2")

	def advance_all(self) -> None:
		self.part1()
		self.part2()

	def _kepler_propagate(self, r: np.ndarray, v: np.ndarray, M: float, dt: float):
		return self.integ._uv_solver.propagate(r, v, M, dt)
