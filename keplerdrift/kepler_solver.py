"""
This module implements Kepler's equation solver using Stumpff/Mikkola universal
variables.

The UniversalVariableKeplerSolver class provides exact two-body propagation over one
step through the propagate method: it derives the orbital invariants (r0, eta, beta,
zeta) from the current state, solves the universal Kepler equation
s(X) = r0 X + eta G2 + zeta G3 - dt = 0 for the universal anomaly X by iteration from
X = 0, and applies the Gauss f-g transformation to produce the new position and
velocity. The G functions G_n = X^n c_n(beta X^2) are built on the Stumpff evaluators,
which keeps one formulation valid for elliptic, parabolic and hyperbolic orbits.

The root-find keeps a sign bracket around the root, since s is strictly increasing, and
falls back to bisection whenever a step leaves the bracket or stalls. Two step policies
are available inside it: plain Newton (the default) and a second order Householder
(Halley form) update that falls back to Newton whenever its denominator degenerates.
The velocity update can read the pre-step position (classical f-g) or the freshly
written position, the latter kept only to reproduce legacy output. Failures are raised
as ConvergenceFailure or DegenerateOrbitError and never leave a body half-updated.
"""

from __future__ import annotations
import logging
import math
import sys
from dataclasses import dataclass
from typing import Tuple, TYPE_CHECKING
import numpy as np

from .errors import ConvergenceFailure, DegenerateOrbitError, KeplerError
from .integrator_constants import IntegratorConstants
from .stumpff import c

if TYPE_CHECKING:
    from .sim_config import SimConfig
    from .simulation_state import SimulationState


_log = logging.getLogger(__name__)

_RESIDUAL_FLOOR = IntegratorConstants.RESIDUAL_FLOOR_ULPS * sys.float_info.epsilon



def universal_g(n: int, beta: float, X: float) -> float:
	return X ** n * c(n, beta * X * X)


@dataclass(frozen=True)
class OrbitalInvariants:
	r0: float
	v2: float
	eta: float
	beta: float
	zeta: float

	@classmethod
	def from_state(cls, r: np.ndarray, v: np.ndarray, M: float) -> "OrbitalInvariants":
		r0 = math.sqrt(float(np.dot(r, r)))
		v2 = float(np.dot(v, v))
		if not (math.isfinite(r0) and math.isfinite(v2)):
			raise DegenerateOrbitError("non-finite position or velocity")
		if r0 == 0.0:
			raise DegenerateOrbitError("body coincides with the central mass (r0 = 0)")
		eta = float(np.dot(r, v))
		beta = 2.0 * M / r0 - v2
		zeta = M - beta * r0
		return cls(r0=r0, v2=v2, eta=eta, beta=beta, zeta=zeta)


class UniversalVariableKeplerSolver:
	def __init__(
		self,
		tolerance: float = IntegratorConstants.KEPLER_TOLERANCE,
		max_iterations: int = IntegratorConstants.MAX_KEPLER_ITERATIONS,
		root_finder: str = "newton",
		velocity_update: str = "initial_position",
	) -> None:
		self.tolerance = float(tolerance)
		self.max_iterations = int(max_iterations)
		self.root_finder = root_finder
		self.velocity_update = velocity_update
		self.last_iterations = 0

	@classmethod
	def from_config(cls, cfg: "SimConfig") -> "UniversalVariableKeplerSolver":
		return cls(
			tolerance=cfg.kepler_tolerance,
			max_iterations=cfg.max_kepler_iterations,
			root_finder=cfg.root_finder,
			velocity_update=cfg.velocity_update,
		)

	def _householder_step(self, s: float, sp: float, inv: OrbitalInvariants, X: float, G1: float) -> float:
		G0 = universal_g(0, inv.beta, X)
		spp = inv.eta * G0 + inv.zeta * G1
		denom = sp * sp - 0.5 * s * spp
		if denom != 0.0:
			dX = -(s * sp) / denom
			if math.isfinite(dX):
				return dX
		return -s / sp

	@staticmethod
	def _residual(inv: OrbitalInvariants, X: float, dt: float) -> Tuple[float, float, float, float]:
		"""Return s(X), s'(X), G1 and the round-off floor of s at X."""
		G1 = universal_g(1, inv.beta, X)
		G2 = universal_g(2, inv.beta, X)
		G3 = universal_g(3, inv.beta, X)
		t0 = inv.r0 * X
		t2 = inv.eta * G2
		t3 = inv.zeta * G3
		s = t0 + t2 + t3 - dt
		sp = inv.r0 + inv.eta * G1 + inv.zeta * G2
		floor = _RESIDUAL_FLOOR * (abs(t0) + abs(t2) + abs(t3) + abs(dt))
		return s, sp, G1, floor

	def solve_universal_anomaly(self, inv: OrbitalInvariants, dt: float) -> float:
		"""
		Solve s(X) = 0 starting from X = 0.

		s'(X) = r(X) > 0, so s is strictly increasing and the sign of every residual
		moves one side of a bracket [lo, hi] around the root. Newton (or Householder)
		steps are taken while they land inside the bracket and shrink fast enough,
		bisection otherwise. The iterate is accepted once the relative step drops
		below the tolerance, the bracket collapses to adjacent floats, or |s| reaches
		its round-off floor.
		"""
		X = 0.0
		lo = -math.inf
		hi = math.inf
		dX_old = math.inf
		for it in range(1, self.max_iterations + 1):
			self.last_iterations = it
			try:
				s, sp, G1, floor = self._residual(inv, X, dt)
			except (OverflowError, ConvergenceFailure):
				s = math.nan
			if not math.isfinite(s):
				# overflow; a residual with no sign is taken to lie beyond the root
				if s > 0.0 or (math.isnan(s) and X > 0.0):
					hi = X
				else:
					lo = X
				if not (math.isfinite(lo) and math.isfinite(hi)):
					raise ConvergenceFailure(f"Kepler equation is not finite at X={X!r}")
				X = 0.5 * (lo + hi)
				continue
			if abs(s) <= floor:
				return X
			if s < 0.0:
				lo = X
			else:
				hi = X
			bracketed = math.isfinite(lo) and math.isfinite(hi)
			if bracketed and hi <= math.nextafter(lo, math.inf):
				return X

			if sp > 0.0 and math.isfinite(sp):
				if self.root_finder == "householder":
					X_new = X + self._householder_step(s, sp, inv, X, G1)
				else:
					X_new = X - s / sp
				if not bracketed and not lo < X_new < hi:
					X_new = X - s / sp
			elif bracketed:
				X_new = math.nan
			else:
				raise DegenerateOrbitError(f"non-positive derivative of the Kepler equation at X={X!r}")
			if bracketed and (not lo < X_new < hi or abs(2.0 * s) > abs(dX_old * sp)):
				X_new = 0.5 * (lo + hi)
			if not math.isfinite(X_new):
				raise ConvergenceFailure(f"universal anomaly diverged after {it} iterations")

			dX = X_new - X
			dX_old = dX
			X = X_new
			if dX == 0.0 or abs(dX) < self.tolerance * abs(X):
				return X
		raise ConvergenceFailure(
			f"universal anomaly not converged to {self.tolerance:g} in {self.max_iterations} iterations"
		)

	def gauss_fg(self, inv: OrbitalInvariants, M: float, dt: float, X: float) -> Tuple[float, float, float, float]:
		G1 = universal_g(1, inv.beta, X)
		G2 = universal_g(2, inv.beta, X)
		G3 = universal_g(3, inv.beta, X)
		r = inv.r0 + inv.eta * G1 + inv.zeta * G2
		if r == 0.0 or not math.isfinite(r):
			raise DegenerateOrbitError(f"propagated radius is {r!r}")
		f = 1.0 - M * G2 / inv.r0
		g = dt - M * G3
		fd = -M * G1 / (inv.r0 * r)
		gd = 1.0 - M * G2 / r
		return f, g, fd, gd

	def _propagate_single(self, r, v, M, dt):
		r = np.asarray(r, dtype=float)
		v = np.asarray(v, dtype=float)
		M = float(M)
		dt = float(dt)
		if not (M > 0.0 and math.isfinite(M)):
			raise DegenerateOrbitError(f"central mass must be positive and finite, got {M!r}")
		inv = OrbitalInvariants.from_state(r, v, M)
		X = self.solve_universal_anomaly(inv, dt)
		f, g, fd, gd = self.gauss_fg(inv, M, dt, X)
		r_vec = f * r + g * v
		if self.velocity_update == "updated_position":
			v_vec = fd * r_vec + gd * v
		else:
			v_vec = fd * r + gd * v
		_log.debug("kepler step: beta=%.6g X=%.17g iterations=%d", inv.beta, X, self.last_iterations)
		return r_vec, v_vec

	def propagate(self, r, v, M, dt):
		r = np.asarray(r, dtype=float)
		v = np.asarray(v, dtype=float)
		M = float(M)
		dt = float(dt)
		if r.ndim == 1:
			return self._propagate_single(r, v, M, dt)
		out_r = []
		out_v = []
		for i, (ri, vi) in enumerate(zip(r, v)):
			try:
				rn, vn = self._propagate_single(ri, vi, M, dt)
			except KeplerError as exc:
				exc.body_index = i
				raise
			out_r.append(rn)
			out_v.append(vn)
		return np.array(out_r).reshape(r.shape), np.array(out_v).reshape(v.shape)

	def kepler_step(self, state: "SimulationState", i: int) -> None:
		if i == 0:
			return
		try:
			r_new, v_new = self._propagate_single(state._pos[i], state._vel[i], state.central_mass, state.dt)
		except KeplerError as exc:
			exc.body_index = i
			raise
		state._pos[i] = r_new
		state._vel[i] = v_new
