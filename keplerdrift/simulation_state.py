"""
This module manages the internal state representation for Kepler propagation.

The SimulationState class maintains numpy arrays for masses, positions and velocities
together with the simulation clock (t, dt), provides property accessors with validation,
handles state initialization from Body objects or raw arrays, and supports snapshot and
restore of the full state. Body index 0 is the central mass; central_mass exposes it for
the solver. Planar (width-2) inputs are padded with z = 0 so every array is (N, 3).
"""

from __future__ import annotations
import logging
import math
import numpy as np
from typing import List, TYPE_CHECKING

from .body_view import BodyView

if TYPE_CHECKING:
    from .body import Body


_log = logging.getLogger(__name__)



def _as_vectors(value) -> np.ndarray | None:
	arr = np.asarray(value, dtype=np.float64)
	if arr.ndim == 1:
		if arr.size % 3 == 0:
			arr = arr.reshape(-1, 3)
		else:
			return None
	if arr.ndim != 2 or arr.shape[1] not in (2, 3):
		return None
	if arr.shape[1] == 2:
		arr = np.hstack([arr, np.zeros((arr.shape[0], 1), dtype=np.float64)])
	return arr


class SimulationState:

	def __init__(self, dt: float = 0.01, t: float = 0.0):
		self.n_bodies: int = 0
		self.t: float = float(t)
		self.dt: float = float(dt)
		self._mass: np.ndarray = np.empty(0, dtype=np.float64)
		self._pos: np.ndarray = np.empty((0, 3), dtype=np.float64)
		self._vel: np.ndarray = np.empty((0, 3), dtype=np.float64)

	@property
	def pos(self) -> np.ndarray:
		return self._pos

	@property
	def vel(self) -> np.ndarray:
		return self._vel

	@property
	def mass(self) -> np.ndarray:
		return self._mass

	@property
	def central_mass(self) -> float:
		if self.n_bodies == 0:
			return 0.0
		return float(self._mass[0])

	@property
	def bodies(self) -> List[BodyView]:
		return [BodyView(self, i) for i in range(self.n_bodies)]

	@pos.setter
	def pos(self, value: np.ndarray) -> None:
		arr = _as_vectors(value)
		if arr is None:
			_log.warning("state.pos must be shape (N,3), (N,2) or flat length 3N")
			return
		if arr.shape != self._pos.shape:
			_log.warning("shape mismatch when assigning to state.pos: expected %s, got %s",
						 self._pos.shape, arr.shape)
			return
		self._pos[...] = arr

	@vel.setter
	def vel(self, value: np.ndarray) -> None:
		arr = _as_vectors(value)
		if arr is None:
			_log.warning("state.vel must be shape (N,3), (N,2) or flat length 3N")
			return
		if arr.shape != self._vel.shape:
			_log.warning("shape mismatch when assigning to state.vel: expected %s, got %s",
						 self._vel.shape, arr.shape)
			return
		self._vel[...] = arr

	@mass.setter
	def mass(self, value: np.ndarray) -> None:
		arr = np.asarray(value, dtype=np.float64).ravel()
		if arr.shape != self._mass.shape:
			_log.warning("shape mismatch when assigning to state.mass: expected %s, got %s",
						 self._mass.shape, arr.shape)
			return
		if np.any(arr <= 0) or not np.all(np.isfinite(arr)):
			_log.warning("all masses must be positive finite numbers")
			return
		self._mass[...] = arr

	def build_state(self, bodies: List[Body] | None, masses=None, positions=None, velocities=None) -> bool:
		if bodies is None:
			if masses is None or positions is None:
				return False

			masses = list(masses)
			if velocities is None:
				velocities = np.zeros((len(masses), 3))

			pos = _as_vectors(positions)
			vel = _as_vectors(velocities)
			if pos is None or vel is None:
				return False
			if vel.shape[0] == 1 and len(masses) > 1:
				vel = np.repeat(vel, len(masses), axis=0)
			if not (len(masses) == pos.shape[0] == vel.shape[0]):
				return False

			mass_arr = np.asarray(masses, dtype=np.float64)
		else:
			mass_list = []
			for b in bodies:
				mass_list.append(b.mass)
			mass_arr = np.array(mass_list, dtype=np.float64)

			pos_list = []
			for b in bodies:
				pos_list.append((b.x, b.y, b.z))
			pos = np.array(pos_list, dtype=np.float64).reshape(-1, 3)

			vel_list = []
			for b in bodies:
				vel_list.append((b.vx, b.vy, b.vz))
			vel = np.array(vel_list, dtype=np.float64).reshape(-1, 3)

		if np.any(mass_arr <= 0) or not np.all(np.isfinite(mass_arr)):
			return False

		self.n_bodies = int(mass_arr.size)
		self._mass = mass_arr
		self._pos = pos
		self._vel = vel
		return True

	def advance_clock(self) -> None:
		self.t += self.dt

	def snapshot(self) -> dict:
		return {
			"masses": self._mass.copy(),
			"positions": self._pos.copy(),
			"velocities": self._vel.copy(),
			"t": float(self.t),
			"dt": float(self.dt),
		}

	def restore(self, snap: dict) -> None:
		self._mass = np.asarray(snap["masses"], dtype=np.float64).copy()
		self._pos = np.asarray(snap["positions"], dtype=np.float64).copy()
		self._vel = np.asarray(snap["velocities"], dtype=np.float64).copy()
		self.n_bodies = len(self._mass)
		self.t = float(snap.get("t", self.t))
		dt = float(snap.get("dt", self.dt))
		if math.isfinite(dt):
			self.dt = dt
