import math
import numpy as np

"""
This module provides two-body helper quantities in units where the gravitational constant is one. specific_orbital_energy and energy_parameter compute the conserved energy v^2/2 - M/r and the universal variable energy parameter beta = 2M/r - v^2 (beta > 0 bound, beta < 0 unbound). circular_velocity and orbital_period set up reference orbits for diagnostics and tests. All functions accept array-like vectors and return plain floats.


"""

def specific_orbital_energy(r, v, M: float) -> float:
	r = np.asarray(r, dtype=float)
	v = np.asarray(v, dtype=float)
	return float(0.5 * np.dot(v, v) - M / np.linalg.norm(r))


def energy_parameter(r, v, M: float) -> float:
	r = np.asarray(r, dtype=float)
	v = np.asarray(v, dtype=float)
	return float(2.0 * M / np.linalg.norm(r) - np.dot(v, v))


def circular_velocity(M: float, r: float) -> float:
	return math.sqrt(M / r)


def orbital_period(M: float, a: float) -> float:
	if a <= 0:
		return math.inf
	return 2.0 * math.pi * math.sqrt(a ** 3 / M)
