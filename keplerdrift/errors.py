"""
This module defines the exception hierarchy raised by the Kepler propagation kernel.

KeplerError is the common base for every numerical failure local to a single body's
propagation. ConvergenceFailure covers a universal Kepler equation root-find that
exceeds its iteration cap or produces non-finite iterates, DegenerateOrbitError covers
geometry the f-g transformation cannot handle (a body at the central mass, a collapsed
radius after propagation, non-finite input), and StumpffIndexError flags a Stumpff
function request outside the precomputed coefficient table. The step driver catches
KeplerError to apply its per-body failure policy.
"""

from __future__ import annotations
from typing import Optional



class KeplerError(ArithmeticError):
	def __init__(self, message: str, body_index: Optional[int] = None) -> None:
		super().__init__(message)
		self.message = message
		self.body_index = body_index

	def __str__(self) -> str:
		if self.body_index is None:
			return self.message
		return f"body {self.body_index}: {self.message}"


class ConvergenceFailure(KeplerError):
	"""Raised when the universal anomaly iteration does not settle."""


class DegenerateOrbitError(KeplerError):
	"""Raised when the orbit geometry makes the f-g update undefined."""


class StumpffIndexError(KeplerError, IndexError):
	"""Raised for a Stumpff index the coefficient table cannot serve."""
