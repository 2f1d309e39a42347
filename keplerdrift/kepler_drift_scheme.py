from __future__ import annotations
import logging
from typing import List
from .errors import KeplerError
from .integration_scheme_base import IntegrationScheme

"""
This module implements the Kepler drift step driver. The KeplerDriftScheme class advances every non-central body along its analytic two-body orbit about body 0 for one fixed step and then advances the simulation clock. part1 is the empty first phase of the drift-kick-drift call convention; all work happens in part2. Bodies are independent under this kernel, so they are propagated in index order into staged copies of the position and velocity arrays and committed together. Under the "raise" failure policy the first KeplerError aborts the step with state and clock untouched; under "skip" the failing body keeps its pre-step state, the failure is logged and collected in last_failures, and the step completes for everyone else.
"""

_log = logging.getLogger(__name__)


class KeplerDriftScheme(IntegrationScheme):

	def __init__(self, integrator) -> None:
		super().__init__(integrator)
		self.last_failures: List[KeplerError] = []

	def part1(self) -> None:
		pass

	def part2(self) -> None:
		state = self.integ.state
		skip = self.integ.cfg.on_body_failure == "skip"
		self.last_failures = []

		n = state.n_bodies
		if n >= 2:
			M = state.central_mass
			dt = state.dt
			new_pos = state._pos.copy()
			new_vel = state._vel.copy()
			for i in range(1, n):
				try:
					r_new, v_new = self._kepler_propagate(state._pos[i], state._vel[i], M, dt)
				except KeplerError as exc:
					exc.body_index = i
					if not skip:
						raise
					_log.warning("kepler drift skipped body %d at t=%g: %s", i, state.t, exc.message)
					self.last_failures.append(exc)
					continue
				new_pos[i] = r_new
				new_vel[i] = v_new
			state._pos[...] = new_pos
			state._vel[...] = new_vel

		state.advance_clock()
