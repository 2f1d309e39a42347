from __future__ import annotations
import math
import numpy as np
import pandas as pd
from typing import Dict, List, TYPE_CHECKING
if TYPE_CHECKING:
    from .simulation import Simulation

"""
This module computes and monitors the two-body conserved quantities of a Kepler propagation. The Diagnostics class provides per-body specific orbital energy (v^2/2 - M/r) and specific angular momentum (r x v) measured relative to the central mass, a record method that appends one row per orbiting body to an in-memory history, a history_frame method returning that history as a pandas DataFrame, and relative energy drift checks against the configured tolerance. Every quantity is exactly conserved by the analytic propagation, so any drift measures round-off or a wrong velocity update ordering.

"""




class Diagnostics:

	def __init__(self, simulation: "Simulation") -> None:
		self.sim = simulation
		self._tol_pref = float(getattr(simulation.cfg, "energy_tol_pref", 1e-10))
		self._rows: List[Dict[str, float]] = []
		self._E0: Dict[int, float] = {}

	def specific_energies(self) -> np.ndarray:
		state = self.sim.state
		M = state.central_mass
		pos = state.pos[1:]
		vel = state.vel[1:]
		if pos.shape[0] == 0:
			return np.empty(0, dtype=float)
		r = np.sqrt(np.einsum("ij,ij->i", pos, pos))
		v2 = np.einsum("ij,ij->i", vel, vel)
		return 0.5 * v2 - M / r

	def specific_angular_momenta(self) -> np.ndarray:
		state = self.sim.state
		if state.n_bodies < 2:
			return np.empty((0, 3), dtype=float)
		return np.cross(state.pos[1:], state.vel[1:]).reshape(-1, 3)

	def record(self) -> None:
		state = self.sim.state
		energies = self.specific_energies()
		if energies.size == 0:
			return
		h = self.specific_angular_momenta()
		pos = state.pos[1:]
		for k in range(energies.size):
			i = k + 1
			E = float(energies[k])
			self._E0.setdefault(i, E)
			self._rows.append({
				"t": float(state.t),
				"body": i,
				"energy": E,
				"r": float(np.linalg.norm(pos[k])),
				"hx": float(h[k, 0]),
				"hy": float(h[k, 1]),
				"hz": float(h[k, 2]),
			})

	def history_frame(self) -> pd.DataFrame:
		return pd.DataFrame(self._rows, columns=["t", "body", "energy", "r", "hx", "hy", "hz"])

	def relative_energy_drift(self) -> float:
		if not self._rows:
			return 0.0
		df = self.history_frame()
		drift = 0.0
		for body, group in df.groupby("body"):
			E0 = self._E0[int(body)]
			scale = abs(E0) if E0 != 0.0 else 1.0
			val = float(np.max(np.abs(group["energy"].to_numpy() - E0))) / scale
			if math.isfinite(val) and val > drift:
				drift = val
		return drift

	def energy_within_tolerance(self) -> bool:
		return self.relative_energy_drift() <= self._tol_pref

	def reset(self) -> None:
		self._rows = []
		self._E0 = {}
