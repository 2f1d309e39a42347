from __future__ import annotations
import logging
from typing import TYPE_CHECKING, List
from .errors import KeplerError
from .kepler_solver import UniversalVariableKeplerSolver
from .integration_scheme_base import IntegrationScheme
from .kepler_drift_scheme import KeplerDriftScheme

if TYPE_CHECKING:
	from .simulation import Simulation

"""
This central module implements the Integrator class that coordinates fixed-step propagation for a Simulation. It owns the universal variable Kepler solver configured from SimConfig, builds the integration scheme selected by integrator_mode, and drives it through the two-phase part1/part2 convention once per step. integrate repeats the step a fixed number of times; the step size is never adapted. The class exposes the scheme's capability flags and the failures collected by the last step so callers can decide how to react to skipped bodies.

"""

_log = logging.getLogger(__name__)


class Integrator:

	def __init__(self, sim: "Simulation") -> None:
		self.sim = sim
		self.cfg = sim.cfg
		self.state = sim._state
		self._uv_solver = UniversalVariableKeplerSolver.from_config(self.cfg)
		self._scheme: IntegrationScheme = self._make_scheme(self.cfg.integrator_mode)
		self._steps_taken = 0

	def _make_scheme(self, mode: str) -> IntegrationScheme:
		if mode == "kepler":
			return KeplerDriftScheme(self)
		raise ValueError(f"unknown integrator mode {mode!r}")

	@property
	def scheme(self) -> IntegrationScheme:
		return self._scheme

	@property
	def steps_taken(self) -> int:
		return self._steps_taken

	@property
	def last_failures(self) -> List[KeplerError]:
		return list(getattr(self._scheme, "last_failures", []))

	def capabilities(self) -> dict:
		return self._scheme.capabilities()

	def part1(self) -> None:
		self._scheme.part1()

	def part2(self) -> None:
		self._scheme.part2()
		self._steps_taken += 1

	def step(self) -> None:
		self.part1()
		self.part2()

	def integrate(self, n_steps: int) -> None:
		n_steps = int(n_steps)
		if n_steps < 0:
			raise ValueError(f"n_steps must be non-negative, got {n_steps}")
		for _ in range(n_steps):
			self.step()
		_log.debug("integrated %d steps to t=%g", n_steps, self.state.t)