"""Tests for the universal variable Kepler solver and the G functions."""

import math

import numpy as np
import pytest

from keplerdrift import (
    Body,
    ConvergenceFailure,
    DegenerateOrbitError,
    KeplerError,
    OrbitalInvariants,
    SimulationState,
    UniversalVariableKeplerSolver,
    energy_parameter,
    orbital_period,
    specific_orbital_energy,
    universal_g,
)


# --- Fixtures ---

@pytest.fixture
def solver():
    return UniversalVariableKeplerSolver()


@pytest.fixture
def circular_state():
    """Unit circular orbit about M = 1, inclined 30 deg."""
    inc = math.radians(30.0)
    r = np.array([1.0, 0.0, 0.0])
    v = np.array([0.0, math.cos(inc), math.sin(inc)])
    return r, v


@pytest.fixture
def elliptic_state():
    r = np.array([1.0, 0.0, 0.0])
    v = np.array([0.0, 1.2, 0.1])
    return r, v


@pytest.fixture
def hyperbolic_state():
    r = np.array([1.0, 0.0, 0.0])
    v = np.array([0.0, 1.6, 0.2])
    return r, v


def _rel(a, b):
    return float(np.linalg.norm(np.asarray(a) - np.asarray(b)) / np.linalg.norm(b))


def _propagate_many(solver, r, v, M, dt, n):
    for _ in range(n):
        r, v = solver.propagate(r, v, M, dt)
    return r, v


def _eccentric_anomaly(mean_anomaly, e):
    """Classical Kepler equation E - e sin E = M by bisection on [M - e, M + e]."""
    lo, hi = mean_anomaly - e, mean_anomaly + e
    for _ in range(200):
        mid = 0.5 * (lo + hi)
        if mid - e * math.sin(mid) < mean_anomaly:
            lo = mid
        else:
            hi = mid
    return 0.5 * (lo + hi)


def _state_at(a, e, E, M=1.0):
    b = a * math.sqrt(1.0 - e * e)
    E_dot = math.sqrt(M / a ** 3) / (1.0 - e * math.cos(E))
    r = np.array([a * (math.cos(E) - e), b * math.sin(E), 0.0])
    v = np.array([-a * math.sin(E) * E_dot, b * math.cos(E) * E_dot, 0.0])
    return r, v


def _elliptic_orbit(a, e, nu, dt, M=1.0):
    """Initial and analytic final state of an ellipse starting at true anomaly nu."""
    E0 = 2.0 * math.atan2(math.sqrt(1.0 - e) * math.sin(0.5 * nu), math.sqrt(1.0 + e) * math.cos(0.5 * nu))
    mean_anomaly = E0 - e * math.sin(E0) + math.sqrt(M / a ** 3) * dt
    return _state_at(a, e, E0, M), _state_at(a, e, _eccentric_anomaly(mean_anomaly, e), M)


# --- G functions and invariants ---

class TestUniversalG:

    def test_zero_anomaly(self):
        assert universal_g(0, 0.7, 0.0) == 1.0
        for n in (1, 2, 3):
            assert universal_g(n, 0.7, 0.0) == 0.0

    def test_parabolic_limit_is_power_over_factorial(self):
        X = 0.8
        for n in range(4):
            assert universal_g(n, 0.0, X) == pytest.approx(X ** n / math.factorial(n), rel=1e-15)

    def test_elliptic_g1_is_scaled_sine(self):
        beta, X = 0.5, 2.0
        k = math.sqrt(beta)
        assert universal_g(1, beta, X) == pytest.approx(math.sin(k * X) / k, rel=1e-12)


class TestOrbitalInvariants:

    def test_values(self):
        inv = OrbitalInvariants.from_state(np.array([3.0, 4.0, 0.0]), np.array([0.0, 0.5, 0.0]), 1.0)
        assert inv.r0 == 5.0
        assert inv.v2 == 0.25
        assert inv.eta == 2.0
        assert inv.beta == pytest.approx(0.15)
        assert inv.zeta == pytest.approx(0.25)

    def test_beta_sign_tracks_orbit_type(self, elliptic_state, hyperbolic_state):
        assert energy_parameter(*elliptic_state, 1.0) > 0.0
        assert energy_parameter(*hyperbolic_state, 1.0) < 0.0

    def test_body_at_center_is_degenerate(self):
        with pytest.raises(DegenerateOrbitError):
            OrbitalInvariants.from_state(np.zeros(3), np.array([0.0, 1.0, 0.0]), 1.0)


# --- Propagation properties ---

class TestZeroStep:

    def test_state_unchanged(self, solver, elliptic_state):
        r, v = elliptic_state
        r_new, v_new = solver.propagate(r, v, 1.0, 0.0)
        assert np.array_equal(r_new, r)
        assert np.array_equal(v_new, v)

    def test_converges_immediately(self, solver, elliptic_state):
        solver.propagate(*elliptic_state, 1.0, 0.0)
        assert solver.last_iterations == 1


class TestCircularOrbit:

    def test_full_period_round_trip(self, solver, circular_state):
        r, v = circular_state
        period = orbital_period(1.0, 1.0)
        r_new, v_new = solver.propagate(r, v, 1.0, period)
        assert _rel(r_new, r) < 1e-9
        assert _rel(v_new, v) < 1e-9

    def test_full_period_wider_orbit(self, solver):
        M, a = 3.0, 2.0
        r = np.array([0.0, a, 0.0])
        v = np.array([-math.sqrt(M / a), 0.0, 0.0])
        r_new, v_new = solver.propagate(r, v, M, orbital_period(M, a))
        assert _rel(r_new, r) < 1e-9
        assert _rel(v_new, v) < 1e-9

    def test_quarter_period(self, solver):
        r = np.array([1.0, 0.0, 0.0])
        v = np.array([0.0, 1.0, 0.0])
        r_new, v_new = solver.propagate(r, v, 1.0, 0.5 * math.pi)
        assert np.allclose(r_new, [0.0, 1.0, 0.0], atol=1e-12)
        assert np.allclose(v_new, [-1.0, 0.0, 0.0], atol=1e-12)


class TestEnergyConservation:

    def test_elliptic_single_step(self, solver, elliptic_state):
        r, v = elliptic_state
        E0 = specific_orbital_energy(r, v, 1.0)
        r_new, v_new = solver.propagate(r, v, 1.0, 3.0)
        assert abs(specific_orbital_energy(r_new, v_new, 1.0) - E0) / abs(E0) < 1e-10

    def test_elliptic_many_steps(self, solver, elliptic_state):
        r, v = elliptic_state
        E0 = specific_orbital_energy(r, v, 1.0)
        r_new, v_new = _propagate_many(solver, r, v, 1.0, 0.05, 400)
        assert abs(specific_orbital_energy(r_new, v_new, 1.0) - E0) / abs(E0) < 1e-10

    def test_hyperbolic_many_steps(self, solver, hyperbolic_state):
        r, v = hyperbolic_state
        E0 = specific_orbital_energy(r, v, 1.0)
        r_new, v_new = _propagate_many(solver, r, v, 1.0, 0.1, 200)
        assert np.linalg.norm(r_new) > 10.0
        assert abs(specific_orbital_energy(r_new, v_new, 1.0) - E0) / abs(E0) < 1e-10

    def test_angular_momentum_conserved(self, solver, hyperbolic_state):
        r, v = hyperbolic_state
        h0 = np.cross(r, v)
        r_new, v_new = _propagate_many(solver, r, v, 1.0, 0.1, 50)
        assert _rel(np.cross(r_new, v_new), h0) < 1e-12

    def test_near_parabolic_orbit(self, solver):
        r = np.array([1.0, 0.0, 0.0])
        v = np.array([0.0, math.sqrt(2.0), 0.0])
        h0 = np.cross(r, v)
        r_new, v_new = _propagate_many(solver, r, v, 1.0, 0.1, 30)
        assert np.linalg.norm(r_new) > 1.0
        assert _rel(np.cross(r_new, v_new), h0) < 1e-12


class TestStepComposition:

    @pytest.mark.parametrize("state_name", ["elliptic_state", "hyperbolic_state"])
    def test_one_step_equals_ten_substeps(self, solver, state_name, request):
        r, v = request.getfixturevalue(state_name)
        r_one, v_one = solver.propagate(r, v, 1.0, 1.0)
        r_ten, v_ten = _propagate_many(solver, r, v, 1.0, 0.1, 10)
        assert _rel(r_ten, r_one) < 1e-10
        assert _rel(v_ten, v_one) < 1e-10


# --- Policies ---

class TestRootFinderPolicy:

    def test_householder_matches_newton(self, elliptic_state):
        newton = UniversalVariableKeplerSolver(root_finder="newton")
        householder = UniversalVariableKeplerSolver(root_finder="householder")
        r_n, v_n = newton.propagate(*elliptic_state, 1.0, 2.5)
        r_h, v_h = householder.propagate(*elliptic_state, 1.0, 2.5)
        assert _rel(r_h, r_n) < 1e-12
        assert _rel(v_h, v_n) < 1e-12

    def test_householder_zero_step(self, elliptic_state):
        householder = UniversalVariableKeplerSolver(root_finder="householder")
        r_new, v_new = householder.propagate(*elliptic_state, 1.0, 0.0)
        assert np.array_equal(r_new, elliptic_state[0])
        assert np.array_equal(v_new, elliptic_state[1])

    def test_householder_hyperbolic(self, hyperbolic_state):
        newton = UniversalVariableKeplerSolver(root_finder="newton")
        householder = UniversalVariableKeplerSolver(root_finder="householder")
        r, v = hyperbolic_state
        E0 = specific_orbital_energy(r, v, 1.0)
        r_n, v_n = newton.propagate(r, v, 1.0, 4.0)
        r_h, v_h = householder.propagate(r, v, 1.0, 4.0)
        assert np.linalg.norm(r_h) > 3.0
        assert _rel(r_h, r_n) < 1e-12
        assert _rel(v_h, v_n) < 1e-12
        assert abs(specific_orbital_energy(r_h, v_h, 1.0) - E0) / abs(E0) < 1e-10

    def test_householder_step_falls_back_on_zero_denominator(self):
        householder = UniversalVariableKeplerSolver(root_finder="householder")
        # spp = eta * G0 = 1 at X = 0, so sp^2 - s * spp / 2 vanishes for s = 2, sp = 1
        inv = OrbitalInvariants(r0=1.0, v2=1.0, eta=1.0, beta=0.0, zeta=0.0)
        assert householder._householder_step(2.0, 1.0, inv, 0.0, 0.0) == -2.0

    def test_householder_step_falls_back_on_overflow(self):
        householder = UniversalVariableKeplerSolver(root_finder="householder")
        inv = OrbitalInvariants(r0=1.0, v2=1.0, eta=0.0, beta=0.0, zeta=0.0)
        assert householder._householder_step(1e308, 1e10, inv, 0.0, 0.0) == pytest.approx(-1e298)

    def test_householder_step_regular(self):
        householder = UniversalVariableKeplerSolver(root_finder="householder")
        inv = OrbitalInvariants(r0=1.0, v2=1.0, eta=1.0, beta=0.0, zeta=0.0)
        assert householder._householder_step(1.0, 2.0, inv, 0.0, 0.0) == pytest.approx(-2.0 / 3.5)


# --- Bracketed root-find ---

class TestBracketedRootFind:

    @pytest.mark.parametrize("root_finder", ["newton", "householder"])
    @pytest.mark.parametrize("a,e,nu,fraction", [
        (2.0, 0.541, 0.891, 0.46),
        (2.0, 0.508, 0.891, 0.511),
        (1.0, 0.9, math.pi, 0.5),
    ])
    def test_eccentric_orbit_matches_analytic(self, root_finder, a, e, nu, fraction):
        solver = UniversalVariableKeplerSolver(root_finder=root_finder)
        dt = fraction * orbital_period(1.0, a)
        (r0, v0), (r1, v1) = _elliptic_orbit(a, e, nu, dt)
        r_new, v_new = solver.propagate(r0, v0, 1.0, dt)
        assert _rel(r_new, r1) < 1e-9
        assert _rel(v_new, v1) < 1e-9

    @pytest.mark.parametrize("root_finder", ["newton", "householder"])
    def test_seeded_elliptic_sweep(self, root_finder):
        solver = UniversalVariableKeplerSolver(root_finder=root_finder)
        rng = np.random.default_rng(1729)
        for _ in range(400):
            a = rng.uniform(0.5, 5.0)
            e = rng.uniform(0.0, 0.95)
            nu = rng.uniform(-math.pi, math.pi)
            dt = rng.uniform(0.0, 1.0) * orbital_period(1.0, a)
            (r0, v0), (r1, v1) = _elliptic_orbit(a, e, nu, dt)
            r_new, v_new = solver.propagate(r0, v0, 1.0, dt)
            v_max = math.sqrt((1.0 + e) / (a * (1.0 - e)))
            assert np.allclose(r_new, r1, rtol=0.0, atol=1e-9 * a)
            assert np.allclose(v_new, v1, rtol=0.0, atol=1e-9 * v_max)
            assert solver.last_iterations < solver.max_iterations

    def test_backward_step_returns_to_start(self, solver):
        a, e, nu = 2.0, 0.541, 0.891
        dt = 0.46 * orbital_period(1.0, a)
        (r0, v0), _ = _elliptic_orbit(a, e, nu, dt)
        r1, v1 = solver.propagate(r0, v0, 1.0, dt)
        r_back, v_back = solver.propagate(r1, v1, 1.0, -dt)
        assert _rel(r_back, r0) < 1e-9
        assert _rel(v_back, v0) < 1e-9

    def test_converged_anomaly_solves_kepler_equation(self, solver):
        a, e, nu = 2.0, 0.541, 0.891
        dt = 0.46 * orbital_period(1.0, a)
        (r0, v0), _ = _elliptic_orbit(a, e, nu, dt)
        inv = OrbitalInvariants.from_state(r0, v0, 1.0)
        X = solver.solve_universal_anomaly(inv, dt)
        s = inv.r0 * X + inv.eta * universal_g(2, inv.beta, X) + inv.zeta * universal_g(3, inv.beta, X) - dt
        assert abs(s) < 1e-12 * dt


# --- Velocity update ---

class TestVelocityUpdateOrdering:

    def test_updated_position_variant_differs(self, elliptic_state):
        classic = UniversalVariableKeplerSolver(velocity_update="initial_position")
        legacy = UniversalVariableKeplerSolver(velocity_update="updated_position")
        r_c, v_c = classic.propagate(*elliptic_state, 1.0, 0.1)
        r_l, v_l = legacy.propagate(*elliptic_state, 1.0, 0.1)
        assert np.array_equal(r_c, r_l)
        assert not np.allclose(v_c, v_l, rtol=1e-6, atol=0.0)

    def test_updated_position_variant_breaks_energy(self):
        legacy = UniversalVariableKeplerSolver(velocity_update="updated_position")
        r = np.array([1.0, 0.0, 0.0])
        v = np.array([0.0, 1.0, 0.0])
        E0 = specific_orbital_energy(r, v, 1.0)
        r_new, v_new = legacy.propagate(r, v, 1.0, 0.1)
        assert abs(specific_orbital_energy(r_new, v_new, 1.0) - E0) / abs(E0) > 1e-6


# --- Failure modes ---

class TestFailureModes:

    def test_iteration_cap(self, elliptic_state):
        capped = UniversalVariableKeplerSolver(max_iterations=1)
        with pytest.raises(ConvergenceFailure):
            capped.propagate(*elliptic_state, 1.0, 0.5)

    def test_body_at_center(self, solver):
        with pytest.raises(DegenerateOrbitError):
            solver.propagate(np.zeros(3), np.array([0.0, 1.0, 0.0]), 1.0, 0.1)

    def test_non_finite_state(self, solver):
        with pytest.raises(DegenerateOrbitError):
            solver.propagate(np.array([1.0, math.nan, 0.0]), np.array([0.0, 1.0, 0.0]), 1.0, 0.1)

    @pytest.mark.parametrize("M", [0.0, -1.0, math.inf])
    def test_bad_central_mass(self, solver, elliptic_state, M):
        with pytest.raises(DegenerateOrbitError):
            solver.propagate(*elliptic_state, M, 0.1)

    def test_failures_share_base_class(self):
        assert issubclass(ConvergenceFailure, KeplerError)
        assert issubclass(DegenerateOrbitError, KeplerError)
        assert issubclass(KeplerError, ArithmeticError)


# --- In-place step ---

class TestKeplerStepInPlace:

    @pytest.fixture
    def state(self):
        st = SimulationState(dt=0.5 * math.pi, t=1.0)
        assert st.build_state([
            Body(1.0),
            Body(1e-3, x=1.0, vy=1.0),
            Body(1e-6, x=-2.0, vy=-0.5),
        ])
        return st

    def test_moves_only_the_requested_body(self, solver, state):
        pos0 = state.pos.copy()
        vel0 = state.vel.copy()
        solver.kepler_step(state, 1)
        assert np.allclose(state.pos[1], [0.0, 1.0, 0.0], atol=1e-12)
        assert np.allclose(state.vel[1], [-1.0, 0.0, 0.0], atol=1e-12)
        for i in (0, 2):
            assert np.array_equal(state.pos[i], pos0[i])
            assert np.array_equal(state.vel[i], vel0[i])
        assert state.t == 1.0

    def test_central_body_is_a_no_op(self, solver, state):
        snap = state.snapshot()
        solver.kepler_step(state, 0)
        assert np.array_equal(state.pos, snap["positions"])
        assert np.array_equal(state.vel, snap["velocities"])

    def test_failure_reports_body_and_leaves_state(self, solver, state):
        state.pos[2] = 0.0
        snap = state.snapshot()
        with pytest.raises(DegenerateOrbitError) as info:
            solver.kepler_step(state, 2)
        assert info.value.body_index == 2
        assert np.array_equal(state.pos, snap["positions"])
        assert np.array_equal(state.vel, snap["velocities"])


# --- Array input ---

class TestStackedPropagation:

    def test_stack_matches_individual(self, solver, elliptic_state, hyperbolic_state):
        r = np.vstack([elliptic_state[0], hyperbolic_state[0]])
        v = np.vstack([elliptic_state[1], hyperbolic_state[1]])
        r_new, v_new = solver.propagate(r, v, 1.0, 0.3)
        for k, (ri, vi) in enumerate([elliptic_state, hyperbolic_state]):
            rk, vk = solver.propagate(ri, vi, 1.0, 0.3)
            assert np.array_equal(r_new[k], rk)
            assert np.array_equal(v_new[k], vk)

    def test_failing_row_reports_its_index(self, solver, elliptic_state):
        r = np.vstack([elliptic_state[0], np.zeros(3)])
        v = np.vstack([elliptic_state[1], elliptic_state[1]])
        with pytest.raises(DegenerateOrbitError) as info:
            solver.propagate(r, v, 1.0, 0.1)
        assert info.value.body_index == 1
