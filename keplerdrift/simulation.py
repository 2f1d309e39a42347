"""
This module implements the Simulation facade, the user-facing entry point of the package.

Simulation builds a SimulationState from Body objects or raw arrays, validates it,
owns the Integrator configured from a SimConfig, and forwards the stepping calls
(step, advance_all, integrate, and the two-phase part1/part2 pair). It also exposes
body views, the clock, the central mass, snapshot and restore, and the failures collected
by the most recent step. The state is passed explicitly to every component, so several
simulations can run side by side without sharing anything but the read-only Stumpff
table.
"""

from __future__ import annotations
import logging
from typing import List, Optional

from .body import Body
from .body_view import BodyView
from .errors import KeplerError
from .integrator import Integrator
from .sim_config import SimConfig
from .simulation_state import SimulationState
from .simulation_validator import SimulationValidator


_log = logging.getLogger(__name__)



class Simulation:
	def __init__(
		self,
		bodies: Optional[List[Body]] = None,
		masses=None,
		positions=None,
		velocities=None,
		*,
		cfg: Optional[SimConfig] = None,
		t: float = 0.0,
	) -> None:
		self.cfg = cfg.copy() if cfg is not None else SimConfig()
		self._state = SimulationState(dt=self.cfg.dt, t=t)

		if not self._state.build_state(bodies, masses, positions, velocities):
			raise ValueError("could not build simulation state from the given bodies/arrays")
		if not SimulationValidator.state_is_valid(self._state.mass, self._state.pos, self._state.vel):
			SimulationValidator.report_invalid_state(
				"initial state",
				masses=self._state.mass.tolist(),
				positions=self._state.pos.tolist(),
				velocities=self._state.vel.tolist(),
			)
			raise ValueError("invalid initial state")

		self._integrator = Integrator(self)
		_log.debug("simulation built with %d bodies, dt=%g", self._state.n_bodies, self._state.dt)

	@property
	def state(self) -> SimulationState:
		return self._state

	@property
	def integrator(self) -> Integrator:
		return self._integrator

	@property
	def n_bodies(self) -> int:
		return self._state.n_bodies

	@property
	def bodies(self) -> List[BodyView]:
		return self._state.bodies

	@property
	def central_mass(self) -> float:
		return self._state.central_mass

	@property
	def t(self) -> float:
		return self._state.t

	@property
	def dt(self) -> float:
		return self._state.dt

	@property
	def last_failures(self) -> List[KeplerError]:
		return self._integrator.last_failures

	def part1(self) -> None:
		self._integrator.part1()

	def part2(self) -> None:
		self._integrator.part2()

	def step(self) -> None:
		self._integrator.step()

	def advance_all(self) -> None:
		self._integrator.step()

	def integrate(self, n_steps: int) -> None:
		self._integrator.integrate(n_steps)

	def snapshot(self) -> dict:
		return self._state.snapshot()

	def restore(self, snap: dict) -> None:
		self._state.restore(snap)
