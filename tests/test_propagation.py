"""
Test suite for batch propagation.

Tests cover:
- Concrete reference scenarios (circular orbit, textbook example)
- Zero-time identity for every regime
- Conservation of energy and angular momentum
- Regime invariance under propagation
- Time reversibility
- Batch independence
- PropagationResult interface
"""

import pytest
import numpy as np
import pandas as pd
from kepuni import (
    propagate, PropagationResult, UniversalPropagator, Regime,
    classify, energy_indicator, specific_energy,
    lagrange_coefficients, solve_universal_anomaly, initial_guess,
    temp_config, EARTH, MARS,
)
from kepuni.batch import column_cross, column_dot, column_norm

MU = EARTH.mu
V_CIRC = EARTH.circular_speed(7000.0)
V_ESC = EARTH.escape_speed(7000.0)


@pytest.fixture
def mixed_batch():
    """Elliptic, eccentric, parabolic, hyperbolic and inclined columns."""
    r0 = np.array([
        [7000.0, 7000.0, 7000.0, 7000.0, 1131.340],
        [0.0, 0.0, 0.0, 0.0, -2282.343],
        [0.0, 0.0, 0.0, 0.0, 6672.423],
    ])
    v0 = np.array([
        [0.0, 0.0, 0.0, 0.0, -5.64305],
        [V_CIRC, 8.5, V_ESC, 12.0, 4.30333],
        [0.0, 0.0, 0.0, 0.0, 2.42879],
    ])
    t = np.array([1800.0, 3000.0, 3600.0, 3600.0, 2400.0])
    return r0, v0, t


class TestReferenceScenarios:
    """Known answers."""

    def test_circular_orbit_one_period(self):
        r0 = np.array([7000.0, 0.0, 0.0])
        v0 = np.array([0.0, 7.546, 0.0])
        alpha = energy_indicator(r0.reshape(3, 1), v0.reshape(3, 1), MU)[0]
        period = EARTH.period(1.0 / alpha)

        r, v = propagate(r0, v0, period, MU)

        assert np.linalg.norm(r[:, 0] - r0) / np.linalg.norm(r0) < 1e-3
        assert np.linalg.norm(v[:, 0] - v0) / np.linalg.norm(v0) < 1e-3

    def test_circular_quarter_period(self):
        """A quarter period rotates the state by 90 degrees."""
        period = EARTH.period(7000.0)
        r, v = propagate([7000.0, 0.0, 0.0], [0.0, V_CIRC, 0.0], period / 4.0)
        assert np.allclose(r[:, 0], [0.0, 7000.0, 0.0], atol=1e-6)
        assert np.allclose(v[:, 0], [-V_CIRC, 0.0, 0.0], atol=1e-9)

    def test_vallado_example_2_4(self):
        """Vallado, Fundamentals of Astrodynamics, Example 2-4 (40 min)."""
        r0 = [1131.340, -2282.343, 6672.423]
        v0 = [-5.64305, 4.30333, 2.42879]
        r, v = propagate(r0, v0, 40.0 * 60.0, 398600.4418)
        assert np.allclose(r[:, 0], [-4219.7527, 4363.0292, -3958.7666], atol=1e-2)
        assert np.allclose(v[:, 0], [3.689866, -1.916735, -6.112511], atol=1e-5)

    def test_many_revolutions(self):
        """Ten whole periods return to the start."""
        period = EARTH.period(7000.0)
        r0 = np.array([7000.0, 0.0, 0.0])
        v0 = np.array([0.0, V_CIRC, 0.0])
        r, v = propagate(r0, v0, 10.0 * period)
        assert np.allclose(r[:, 0], r0, rtol=0, atol=1e-4)
        assert np.allclose(v[:, 0], v0, rtol=0, atol=1e-7)


class TestZeroTime:
    """Zero elapsed time returns the initial state exactly."""

    def test_identity_every_regime(self, mixed_batch):
        r0, v0, _ = mixed_batch
        r, v = propagate(r0, v0, np.zeros(r0.shape[1]))
        assert np.array_equal(r, r0)
        assert np.array_equal(v, v0)

    def test_zero_time_mixed_with_nonzero(self, mixed_batch):
        r0, v0, t = mixed_batch
        t = t.copy()
        t[[0, 3]] = 0.0
        r, v = propagate(r0, v0, t)
        assert np.array_equal(r[:, [0, 3]], r0[:, [0, 3]])
        assert np.array_equal(v[:, [0, 3]], v0[:, [0, 3]])


class TestConservation:
    """Two-body invariants are preserved."""

    def test_specific_energy(self, mixed_batch):
        r0, v0, t = mixed_batch
        result = propagate(r0, v0, t)
        before = specific_energy(r0, v0, MU)
        after = result.specific_energy()
        assert np.allclose(after, before, rtol=1e-8, atol=1e-8)

    def test_angular_momentum(self, mixed_batch):
        r0, v0, t = mixed_batch
        r, v = propagate(r0, v0, t)
        assert np.allclose(column_cross(r, v), column_cross(r0, v0),
                           rtol=1e-8, atol=1e-6)

    def test_regime_is_invariant(self, mixed_batch):
        r0, v0, t = mixed_batch
        result = propagate(r0, v0, t)
        after = classify(energy_indicator(result.r_final, result.v_final, MU))
        for regime, mask in result.regimes:
            assert np.array_equal(after.mask(regime), mask)

    def test_regime_labels(self, mixed_batch):
        r0, v0, t = mixed_batch
        result = propagate(r0, v0, t)
        assert result.regimes.labels().tolist() == [
            'elliptic', 'elliptic', 'parabolic', 'hyperbolic', 'elliptic'
        ]


def band_state(alpha, flight_path_deg):
    """State at 7000 km whose energy indicator is alpha."""
    speed = np.sqrt(MU * (2.0 / 7000.0 - alpha))
    gamma = np.radians(flight_path_deg)
    return (np.array([7000.0, 0.0, 0.0]),
            speed * np.array([np.sin(gamma), np.cos(gamma), 0.0]))


BAND_ALPHAS = [1e-9, -1e-9, 1e-12, -1e-12, 9e-7, -9e-7]
BAND_TIMES = np.array([587.0, 1000.0, 2894.0, 2e5, 1e6])
BAND_TIMES = np.concatenate((BAND_TIMES, -BAND_TIMES))


class TestParabolicBand:
    """Orbits classified parabolic without being exactly parabolic."""

    @pytest.mark.parametrize("alpha", BAND_ALPHAS)
    @pytest.mark.parametrize("flight_path_deg", [0.0, 45.0, -60.0])
    def test_converges_and_conserves(self, alpha, flight_path_deg):
        r0, v0 = band_state(alpha, flight_path_deg)
        n = BAND_TIMES.size
        r0 = np.repeat(r0[:, np.newaxis], n, axis=1)
        v0 = np.repeat(v0[:, np.newaxis], n, axis=1)

        result = propagate(r0, v0, BAND_TIMES)

        assert result.regimes.parabolic.all()
        assert result.converged.all()
        assert np.allclose(energy_indicator(result.r_final, result.v_final, MU),
                           energy_indicator(r0, v0, MU), rtol=0, atol=1e-11)
        h0 = column_cross(r0, v0)
        assert np.allclose(column_cross(result.r_final, result.v_final), h0,
                           rtol=1e-6, atol=1e-6 * np.abs(h0).max())

    def test_edge_of_band_returns_to_start(self):
        r0, v0 = band_state(9e-7, 30.0)
        r1, v1 = propagate(r0, v0, 1e6)
        r2, v2 = propagate(r1, v1, -1e6)
        assert np.allclose(r2[:, 0], r0, rtol=1e-6, atol=1e-3)
        assert np.allclose(v2[:, 0], v0, rtol=1e-6, atol=1e-9)


class TestTimeReversibility:
    """Forward then backward propagation returns to the start."""

    @pytest.mark.parametrize("speed,t", [
        (V_CIRC, 2000.0),
        (8.5, 6000.0),
        (12.0, 5000.0),
        (20.0, 20000.0),
    ])
    def test_round_trip(self, speed, t):
        r0 = np.array([7000.0, 500.0, -300.0])
        v0 = np.array([0.2, speed, 1.0])
        r1, v1 = propagate(r0, v0, t)
        r2, v2 = propagate(r1, v1, -t)
        assert np.allclose(r2[:, 0], r0, rtol=1e-6)
        assert np.allclose(v2[:, 0], v0, rtol=1e-6)

    def test_backward_matches_reverse(self):
        """Propagating backward equals reversing a forward step."""
        r0 = np.array([7000.0, 0.0, 0.0])
        v0 = np.array([0.0, 8.5, 0.0])
        r_back, v_back = propagate(r0, v0, -1500.0)
        r_fwd, v_fwd = propagate(r_back[:, 0], v_back[:, 0], 1500.0)
        assert np.allclose(r_fwd[:, 0], r0, rtol=1e-9, atol=1e-6)
        assert np.allclose(v_fwd[:, 0], v0, rtol=1e-9, atol=1e-8)


class TestBatchIndependence:
    """Grouping columns does not change any column's result."""

    def test_batch_equals_individual(self, mixed_batch):
        r0, v0, t = mixed_batch
        r_batch, v_batch = propagate(r0, v0, t)
        for i in range(r0.shape[1]):
            r_i, v_i = propagate(r0[:, i], v0[:, i], t[i])
            assert np.allclose(r_batch[:, i], r_i[:, 0], rtol=1e-10, atol=1e-7)
            assert np.allclose(v_batch[:, i], v_i[:, 0], rtol=1e-10, atol=1e-10)

    def test_column_order_irrelevant(self, mixed_batch):
        r0, v0, t = mixed_batch
        order = np.array([4, 2, 0, 3, 1])
        r_a, v_a = propagate(r0, v0, t)
        r_b, v_b = propagate(r0[:, order], v0[:, order], t[order])
        assert np.allclose(r_a[:, order], r_b, rtol=1e-10, atol=1e-7)
        assert np.allclose(v_a[:, order], v_b, rtol=1e-10, atol=1e-10)

    def test_inputs_not_mutated(self, mixed_batch):
        r0, v0, t = mixed_batch
        copies = (r0.copy(), v0.copy(), t.copy())
        propagate(r0, v0, t)
        assert np.array_equal(r0, copies[0])
        assert np.array_equal(v0, copies[1])
        assert np.array_equal(t, copies[2])


class TestLegacyFdot:
    """The legacy fdot precedence is reproducible on request."""

    def test_legacy_scales_fdot_by_r0_squared(self, mixed_batch):
        r0, v0, t = mixed_batch
        r0_mag = column_norm(r0)
        alpha = energy_indicator(r0, v0, MU)
        x0 = initial_guess(r0, v0, t, MU, alpha, classify(alpha))
        sol = solve_universal_anomaly(x0, alpha, r0_mag, column_dot(r0, v0), t, MU)
        canonical = lagrange_coefficients(sol, r0_mag, t, MU, legacy_fdot=False)
        legacy = lagrange_coefficients(sol, r0_mag, t, MU, legacy_fdot=True)
        assert np.allclose(legacy.fdot, canonical.fdot * r0_mag**2, rtol=1e-12)
        assert np.array_equal(legacy.f, canonical.f)

    def test_legacy_flag_changes_velocity_only(self):
        r0 = [7000.0, 0.0, 0.0]
        v0 = [0.0, 8.5, 0.0]
        canonical = propagate(r0, v0, 1200.0)
        with temp_config(LEGACY_FDOT=True):
            legacy = propagate(r0, v0, 1200.0)
        assert np.array_equal(legacy.r_final, canonical.r_final)
        assert not np.allclose(legacy.v_final, canonical.v_final)


class TestPropagationResult:
    """Result object interface."""

    @pytest.fixture
    def result(self, mixed_batch):
        r0, v0, t = mixed_batch
        return propagate(r0, v0, t)

    def test_unpacks_to_position_and_velocity(self, result):
        r, v = result
        assert r is result.r_final
        assert v is result.v_final

    def test_shapes(self, result, mixed_batch):
        _, _, t = mixed_batch
        assert result.n == t.size
        assert result.r_final.shape == (3, t.size)
        assert result.states().shape == (t.size, 6)
        assert result.iterations.shape == (t.size,)

    def test_state_matches_columns(self, result):
        state = result.state(3)
        assert np.array_equal(state[:3], result.r_final[:, 3])
        assert np.array_equal(state[3:], result.v_final[:, 3])
        assert np.array_equal(result.states()[3], state)

    def test_arrays_are_read_only(self, result):
        with pytest.raises(ValueError):
            result.r_final[0, 0] = 1.0
        with pytest.raises(ValueError):
            result.v_final[0, 0] = 1.0

    def test_converged_flags(self, result):
        assert result.converged.all()
        assert np.all(result.residuals <= 1e-9)

    def test_to_dataframe(self, result):
        df = result.to_dataframe()
        assert isinstance(df, pd.DataFrame)
        assert len(df) == result.n
        assert list(df.columns) == ['orbit', 't', 'regime', 'x', 'y', 'z',
                                    'vx', 'vy', 'vz', 'iterations', 'converged']
        assert df['regime'].iloc[3] == Regime.HYPERBOLIC.value
        assert np.allclose(df[['x', 'y', 'z']].to_numpy().T, result.r_final)

    def test_repr(self, result):
        assert repr(result).startswith("PropagationResult(n=5")


class TestInputForms:
    """Accepted input shapes."""

    def test_single_vector_input(self):
        result = propagate([7000.0, 0.0, 0.0], [0.0, V_CIRC, 0.0], 100.0)
        assert result.n == 1
        assert isinstance(result, PropagationResult)

    def test_scalar_time_broadcast(self, mixed_batch):
        r0, v0, _ = mixed_batch
        broadcast = propagate(r0, v0, 600.0)
        explicit = propagate(r0, v0, np.full(r0.shape[1], 600.0))
        assert np.array_equal(broadcast.r_final, explicit.r_final)
        assert np.array_equal(broadcast.t, explicit.t)

    def test_list_input(self):
        r0 = [[7000.0, 8000.0], [0.0, 0.0], [0.0, 0.0]]
        v0 = [[0.0, 0.0], [V_CIRC, 7.0], [0.0, 0.0]]
        r, v = propagate(r0, v0, [100.0, 200.0])
        assert r.shape == (3, 2)


class TestUniversalPropagator:
    """Reusable propagator bound to a body."""

    def test_uses_body_mu(self):
        prop = UniversalPropagator(MARS)
        r0 = [4000.0, 0.0, 0.0]
        v0 = [0.0, 3.3, 0.0]
        assert np.array_equal(prop.propagate(r0, v0, 3600.0).r_final,
                              propagate(r0, v0, 3600.0, MARS.mu).r_final)

    def test_accepts_bare_mu(self):
        prop = UniversalPropagator(MU)
        assert prop.mu == MU
        assert prop.body.radius is None
        assert prop.body.name is None

    def test_settings_forwarded(self):
        prop = UniversalPropagator(EARTH, max_iterations=1)
        with pytest.raises(RuntimeError):
            prop.propagate([7000.0, 0.0, 0.0], [0.0, 8.5, 0.0], 3000.0)

    def test_repr(self):
        assert repr(UniversalPropagator(EARTH)).startswith(
            "UniversalPropagator(body='Earth'")
