"""
드리프트 엔진 테스트

SPOT:     μ_j = Σ_{m(t) ≤ l ≤ j} w_l (λ_l · λ_j)
TERMINAL: μ_j = -Σ_{j < l ≤ n-1} w_l (λ_l · λ_j)
w_l = δ/(1+δL_l), 로그정규이면 L_l을 곱하고 μ_j에 -½|λ_j|² 를 더함.
"""

import numpy as np
import pytest

from lmm_pricing.src.exceptions import NumericalFailure, OutOfRangeError
from lmm_pricing.src.market import SimulationTimeGrid, TenorStructure
from lmm_pricing.src.models import DriftEngine


@pytest.fixture
def drift_tenor():
    return TenorStructure.uniform(0.0, 3.0, 0.5)


def _realization(tenor, paths=3, seed=7):
    rng = np.random.default_rng(seed)
    return 0.03 + 0.01 * rng.standard_normal((tenor.number_of_components, paths))


def _expected_drift(model, time, realization):
    """성분 쌍을 직접 합산한 기대 드리프트."""
    tenor = model.tenor
    n = tenor.number_of_components
    first = tenor.first_live_component(time)
    lognormal = model.state_space.value == "LOGNORMAL"
    spot = model.measure.value == "SPOT"
    expected = np.zeros_like(realization)
    for j in range(first, n):
        if spot:
            others = range(first, j + 1)
            sign = 1.0
        else:
            others = range(j + 1, n)
            sign = -1.0
        for l in others:
            delta = tenor.period_length(l)
            weight = delta / (1.0 + delta * realization[l])
            if lognormal:
                weight = weight * realization[l]
            expected[j] += sign * weight * model.covariance_model.covariance(time, l, j)
        if lognormal:
            expected[j] += -0.5 * model.covariance_model.covariance(time, j, j)
    return expected


class TestDriftFormula:

    @pytest.mark.parametrize("measure", ["SPOT", "TERMINAL"])
    @pytest.mark.parametrize("state_space", ["NORMAL", "LOGNORMAL"])
    def test_matches_pairwise_sum(self, make_model, drift_tenor, measure, state_space):
        volatility = 0.01 if state_space == "NORMAL" else 0.2
        model = make_model(drift_tenor, volatility=volatility, number_of_factors=3, decay=0.2,
                           measure=measure, state_space=state_space)
        grid = SimulationTimeGrid.covering(drift_tenor, 0.25)
        engine = DriftEngine(model, grid)
        realization = _realization(drift_tenor)

        for time_index in (0, 3, 5):
            time = grid.time(time_index)
            np.testing.assert_allclose(
                engine.drift(time_index, realization),
                _expected_drift(model, time, realization),
                rtol=1e-12, atol=1e-15,
            )

    def test_spot_and_terminal_are_not_mirror_images(self, make_model, drift_tenor):
        realization = _realization(drift_tenor)
        grid = SimulationTimeGrid.covering(drift_tenor, 0.5)
        spot = DriftEngine(make_model(drift_tenor, measure="SPOT", state_space="NORMAL"), grid)
        terminal = DriftEngine(make_model(drift_tenor, measure="TERMINAL", state_space="NORMAL"), grid)
        assert not np.allclose(spot.drift(0, realization), -terminal.drift(0, realization))

    def test_last_component_is_driftless_under_terminal(self, make_model, drift_tenor):
        model = make_model(drift_tenor, measure="TERMINAL", state_space="NORMAL")
        engine = DriftEngine(model, SimulationTimeGrid.covering(drift_tenor, 0.5))
        drift = engine.drift(0, _realization(drift_tenor))
        np.testing.assert_array_equal(drift[-1], 0.0)

    def test_lognormal_ito_term_with_zero_rates_weight(self, make_model, drift_tenor):
        # L → 0 이면 측도 가중치가 사라지고 이토 보정만 남음
        model = make_model(drift_tenor, volatility=0.2, measure="SPOT", state_space="LOGNORMAL")
        engine = DriftEngine(model, SimulationTimeGrid.covering(drift_tenor, 0.5))
        realization = np.full((drift_tenor.number_of_components, 2), 1e-300)
        drift = engine.drift(0, realization)
        np.testing.assert_allclose(drift[1:], -0.5 * 0.04, rtol=1e-12)


class TestFixedComponents:

    def test_fixed_components_have_zero_drift(self, make_model, drift_tenor):
        model = make_model(drift_tenor, measure="SPOT", state_space="LOGNORMAL")
        grid = SimulationTimeGrid.covering(drift_tenor, 0.5)
        engine = DriftEngine(model, grid)
        time_index = grid.index_of(1.0)
        drift = engine.drift(time_index, _realization(drift_tenor))
        # T_0, T_1, T_2 ≤ 1.0 → 고정
        np.testing.assert_array_equal(drift[:3], 0.0)
        assert np.all(drift[3:] != 0.0)

    def test_after_last_fixing_everything_is_zero(self, make_model, drift_tenor):
        model = make_model(drift_tenor)
        grid = SimulationTimeGrid.covering(drift_tenor, 0.5)
        engine = DriftEngine(model, grid)
        drift = engine.drift(grid.number_of_times - 1, _realization(drift_tenor))
        np.testing.assert_array_equal(drift, 0.0)


class TestDriftErrors:

    def test_time_index_out_of_range(self, make_model, drift_tenor):
        grid = SimulationTimeGrid.covering(drift_tenor, 0.5)
        engine = DriftEngine(make_model(drift_tenor), grid)
        with pytest.raises(OutOfRangeError):
            engine.drift(grid.number_of_times, _realization(drift_tenor))

    def test_non_finite_drift_reports_time_and_component(self, make_model, drift_tenor):
        model = make_model(drift_tenor, measure="SPOT", state_space="NORMAL")
        engine = DriftEngine(model, SimulationTimeGrid.covering(drift_tenor, 0.5))
        realization = _realization(drift_tenor)
        # 1 + δL = 0
        realization[2, :] = -2.0
        with np.errstate(divide="ignore", invalid="ignore"):
            with pytest.raises(NumericalFailure) as excinfo:
                engine.drift(0, realization)
        assert excinfo.value.time == 0.0
        assert excinfo.value.component == 2


class TestSinglePathRealization:

    @pytest.mark.parametrize("measure", ["SPOT", "TERMINAL"])
    def test_vector_matches_matrix_column(self, make_model, drift_tenor, measure):
        model = make_model(drift_tenor, number_of_factors=2, decay=0.1, measure=measure, state_space="LOGNORMAL")
        grid = SimulationTimeGrid.covering(drift_tenor, 0.5)
        engine = DriftEngine(model, grid)
        realization = _realization(drift_tenor)
        for time_index in (0, 2):
            column = engine.drift(time_index, realization[:, 1])
            assert column.shape == (drift_tenor.number_of_components,)
            np.testing.assert_allclose(column, engine.drift(time_index, realization)[:, 1], rtol=1e-14)

    def test_flat_vector(self, make_model, drift_tenor):
        engine = DriftEngine(make_model(drift_tenor), SimulationTimeGrid.covering(drift_tenor, 0.5))
        drift = engine.drift(0, np.full(drift_tenor.number_of_components, 0.03))
        assert drift.shape == (drift_tenor.number_of_components,)
        assert np.all(np.isfinite(drift))

    def test_vector_with_wrong_length(self, make_model, drift_tenor):
        engine = DriftEngine(make_model(drift_tenor), SimulationTimeGrid.covering(drift_tenor, 0.5))
        with pytest.raises(OutOfRangeError):
            engine.drift(0, np.full(drift_tenor.number_of_components + 1, 0.03))
