"""
This module implements BodyView, a proxy class providing Body-like access to individual
bodies stored in the SimulationState numpy arrays.

The class uses properties with getters and setters to map attribute access (mass, x, y,
z, vx, vy, vz) directly to the appropriate array indices in the parent state, keeping the
same interface as Body while operating on the array storage. The view assumes the parent
state keeps valid array structures and that the body index remains within bounds.
"""

from __future__ import annotations
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from .simulation_state import SimulationState




class BodyView:
	__slots__ = ("_state", "_i")

	def __init__(self, state: "SimulationState", idx: int) -> None:
		self._state = state
		self._i = int(idx)

	@property
	def index(self) -> int:
		return self._i

	@property
	def mass(self) -> float:
		return float(self._state._mass[self._i])
	@mass.setter
	def mass(self, v: float) -> None:
		self._state._mass[self._i] = float(v)

	@property
	def x(self) -> float:
		return float(self._state._pos[self._i, 0])
	@x.setter
	def x(self, v: float) -> None:
		self._state._pos[self._i, 0] = float(v)

	@property
	def y(self) -> float:
		return float(self._state._pos[self._i, 1])
	@y.setter
	def y(self, v: float) -> None:
		self._state._pos[self._i, 1] = float(v)

	@property
	def z(self) -> float:
		return float(self._state._pos[self._i, 2])
	@z.setter
	def z(self, v: float) -> None:
		self._state._pos[self._i, 2] = float(v)

	@property
	def vx(self) -> float:
		return float(self._state._vel[self._i, 0])
	@vx.setter
	def vx(self, v: float) -> None:
		self._state._vel[self._i, 0] = float(v)

	@property
	def vy(self) -> float:
		return float(self._state._vel[self._i, 1])
	@vy.setter
	def vy(self, v: float) -> None:
		self._state._vel[self._i, 1] = float(v)

	@property
	def vz(self) -> float:
		return float(self._state._vel[self._i, 2])
	@vz.setter
	def vz(self, v: float) -> None:
		self._state._vel[self._i, 2] = float(v)

	def __repr__(self) -> str:
		return (f"Body(mass={self.mass}, x={self.x}, y={self.y}, z={self.z}, "
				f"vx={self.vx}, vy={self.vy}, vz={self.vz})")
