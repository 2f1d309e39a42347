"""
This module provides validation utilities for Kepler propagation states.

The SimulationValidator class offers static methods to check state validity (positive
finite masses, finite positions and velocities, (N, 3) shapes, no orbiting body placed on
the central mass) and to report the offending fields of an invalid state through the
module logger. The checks catch configuration errors before the first step instead of
surfacing them as DegenerateOrbitError mid-run.
"""

from __future__ import annotations
import logging
import math
from typing import Sequence, Tuple
import numpy as np


_log = logging.getLogger(__name__)



Vec3 = Tuple[float, float, float]


class SimulationValidator:
	@staticmethod
	def state_is_valid(
		masses: Sequence[float],
		positions: Sequence[Vec3],
		velocities: Sequence[Vec3],
	) -> bool:

		if masses is None or positions is None or velocities is None:
			return False

		m = np.asarray(masses, dtype=float).ravel()
		r = np.asarray(positions, dtype=float)
		v = np.asarray(velocities, dtype=float)

		if m.size == 0:
			return False
		if r.ndim != 2 or v.ndim != 2 or r.shape != v.shape:
			return False
		if r.shape[0] != m.size or r.shape[1] != 3:
			return False

		for m_i in m:
			if not (m_i > 0.0 and math.isfinite(m_i)):
				return False

		if not np.all(np.isfinite(r)) or not np.all(np.isfinite(v)):
			return False

		# orbiting bodies are measured from the central mass
		for i in range(1, r.shape[0]):
			if not np.any(r[i]):
				return False

		return True

	@staticmethod
	def report_invalid_state(
		label: str,
		masses=None,
		positions=None,
		velocities=None,
	) -> None:

		_log.warning("[invalid] %s", label)
		if masses is not None:
			_log.warning("masses %s", masses)
		if positions is not None:
			_log.warning("positions %s", positions)
			for i, pos in enumerate(positions):
				if len(pos) != 3:
					_log.warning("  position[%d] has %d dimensions (expected 3)", i, len(pos))
				elif i > 0 and not any(pos):
					_log.warning("  position[%d] coincides with the central mass", i)
		if velocities is not None:
			_log.warning("velocities %s", velocities)
			for i, vel in enumerate(velocities):
				if len(vel) != 3:
					_log.warning("  velocity[%d] has %d dimensions (expected 3)", i, len(vel))
