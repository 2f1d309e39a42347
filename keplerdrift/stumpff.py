"""
This module evaluates the Stumpff functions c_n(z) used by the universal variable
formulation of Kepler's equation.

c_n_series sums the defining power series directly from a precomputed table of
reciprocal factorials and is accurate for small |z|. c extends the accurate range to
large positive z with the quadrupling identities, which express c_n(z) through the values
at z/4, recursing until the argument drops below QUADRUPLING_THRESHOLD. Negative
(hyperbolic) arguments always go straight to the series. The recursion is depth bounded
and memoized per evaluation, so every reduction level is computed once and the result
is bit-identical to the naive recursion. c_quadrupled forces one reduction level
regardless of z and exists to cross-check the two evaluation paths.
"""

from __future__ import annotations
import math
from typing import Dict, Tuple

from .errors import ConvergenceFailure, StumpffIndexError
from .integrator_constants import IntegratorConstants



INV_FACTORIAL: Tuple[float, ...] = tuple(
	1.0 / math.factorial(k) for k in range(IntegratorConstants.INV_FACTORIAL_LEN)
)

_SERIES_TERMS = IntegratorConstants.SERIES_TERMS
_SERIES_REL_TOL = IntegratorConstants.SERIES_REL_TOL
_THRESHOLD = IntegratorConstants.QUADRUPLING_THRESHOLD
_MAX_DEPTH = IntegratorConstants.MAX_QUADRUPLING_DEPTH
_MAX_N = IntegratorConstants.MAX_STUMPFF_INDEX

# highest n the series can serve with a full set of terms
MAX_SERIES_INDEX = len(INV_FACTORIAL) - 1 - 2 * (_SERIES_TERMS - 1)

if MAX_SERIES_INDEX < _MAX_N:
	raise StumpffIndexError(
		f"reciprocal factorial table of length {len(INV_FACTORIAL)} cannot serve "
		f"c_{_MAX_N} with {_SERIES_TERMS} series terms"
	)


def c_n_series(n: int, z: float) -> float:
	"""Direct power series sum_j (-z)^j / (n+2j)! truncated at 13 terms."""
	if n < 0 or n > MAX_SERIES_INDEX:
		raise StumpffIndexError(f"Stumpff series index {n} outside 0..{MAX_SERIES_INDEX}")
	z = float(z)
	c_n = 0.0
	for j in range(_SERIES_TERMS):
		term = (-z) ** j * INV_FACTORIAL[n + 2 * j]
		c_n += term
		if abs(term) < _SERIES_REL_TOL * abs(c_n):
			break
	return c_n


def c(n: int, z: float) -> float:
	if n < 0 or n > _MAX_N:
		raise StumpffIndexError(f"Stumpff index {n} outside 0..{_MAX_N}")
	return _c(n, float(z), 0, {})


def c_quadrupled(n: int, z: float) -> float:
	if n < 0 or n > _MAX_N:
		raise StumpffIndexError(f"Stumpff index {n} outside 0..{_MAX_N}")
	z = float(z)
	if not math.isfinite(z):
		raise ConvergenceFailure(f"cannot reduce non-finite Stumpff argument {z}")
	return _reduce(n, z, 0, {})


def _c(n: int, z: float, depth: int, memo: Dict[Tuple[int, int], float]) -> float:
	if z <= _THRESHOLD:
		return c_n_series(n, z)
	key = (n, depth)
	hit = memo.get(key)
	if hit is not None:
		return hit
	if depth >= _MAX_DEPTH or not math.isfinite(z):
		raise ConvergenceFailure(
			f"Stumpff argument {z} not reduced below {_THRESHOLD} within {_MAX_DEPTH} levels"
		)
	val = _reduce(n, z, depth, memo)
	memo[key] = val
	return val


def _reduce(n: int, z: float, depth: int, memo: Dict[Tuple[int, int], float]) -> float:
	zq = z / 4.0
	d = depth + 1
	if n in (0, 2, 4):
		cn4 = _c(3, zq, d, memo) * (1.0 + _c(1, zq, d, memo)) / 8.0
		if n == 4:
			return cn4
		cn2 = 1.0 / 2.0 - z * cn4
		if n == 2:
			return cn2
		return 1.0 - z * cn2
	cn5 = (_c(5, zq, d, memo) + _c(4, zq, d, memo) + _c(3, zq, d, memo) * _c(2, zq, d, memo)) / 16.0
	if n == 5:
		return cn5
	cn3 = 1.0 / 6.0 - z * cn5
	if n == 3:
		return cn3
	return 1.0 - z * cn3


__all__ = ["INV_FACTORIAL", "MAX_SERIES_INDEX", "c_n_series", "c", "c_quadrupled"]
