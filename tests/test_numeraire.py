"""
기준자산 엔진과 캐시 테스트

검증 항목:
1. 반복 호출의 비트 동일성과 캐시 키 집합 불변
2. 서로 다른 경로 생성기 사이의 캐시 비공유 / 소유자 변경 시 무효화
3. 첫 테너점 이전 요청 → OutOfRangeError
4. 변동성 0: 두 측도 모두 할인곡선을 정확히 재현
5. 할인 조정 후 E[1/N(t)] = P(0,t)
6. 동시 요청에서 키별 최대 1회 계산
7. 기준자산 곱이 양수가 아니면 NumericalFailure (테너 시점 포함)
"""

import threading
import time as time_module
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from lmm_pricing.src.exceptions import NumericalFailure, OutOfRangeError
from lmm_pricing.src.simulation import NumeraireCache, NumeraireEngine


# =============================================================================
# NumeraireCache
# =============================================================================


class TestNumeraireCache:

    def test_computes_once_per_key(self):
        cache = NumeraireCache()
        owner = object()
        calls = []

        def compute():
            calls.append(1)
            return 42.0

        assert cache.get_or_compute(owner, "a", compute) == 42.0
        assert cache.get_or_compute(owner, "a", compute) == 42.0
        assert len(calls) == 1
        assert cache.keys() == frozenset({"a"})

    def test_owner_change_clears_entries(self):
        cache = NumeraireCache()
        first_owner, second_owner = object(), object()
        cache.get_or_compute(first_owner, "a", lambda: 1.0)
        cache.get_or_compute(first_owner, "b", lambda: 2.0)
        assert len(cache) == 2

        assert cache.get_or_compute(second_owner, "a", lambda: 10.0) == 10.0
        assert cache.keys() == frozenset({"a"})

    def test_failed_computation_releases_key(self):
        cache = NumeraireCache()
        owner = object()

        def failing():
            raise NumericalFailure("boom")

        with pytest.raises(NumericalFailure):
            cache.get_or_compute(owner, "a", failing)
        assert len(cache) == 0
        assert cache.get_or_compute(owner, "a", lambda: 3.0) == 3.0

    def test_concurrent_requests_compute_once(self):
        cache = NumeraireCache()
        owner = object()
        calls = []
        lock = threading.Lock()

        def slow_compute():
            with lock:
                calls.append(1)
            time_module.sleep(0.05)
            return np.arange(3.0)

        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(lambda _: cache.get_or_compute(owner, "k", slow_compute), range(16)))

        assert len(calls) == 1
        assert all(result is results[0] for result in results)

    def test_concurrent_waiters_receive_failure(self):
        cache = NumeraireCache()
        owner = object()

        def slow_failure():
            time_module.sleep(0.05)
            raise NumericalFailure("boom")

        def request(_):
            try:
                cache.get_or_compute(owner, "k", slow_failure)
            except NumericalFailure:
                return "failed"
            return "ok"

        with ThreadPoolExecutor(max_workers=4) as executor:
            outcomes = list(executor.map(request, range(4)))
        assert outcomes == ["failed"] * 4


# =============================================================================
# NumeraireEngine
# =============================================================================


class TestNumeraireEngine:

    def test_idempotent_and_key_set_stable(self, make_model, make_simulation, tenor):
        simulation = make_simulation(make_model(tenor), number_of_paths=500)
        first = simulation.numeraire(2.0)
        keys = simulation.numeraire_engine.cache.keys()
        second = simulation.numeraire(2.0)
        np.testing.assert_array_equal(first, second)
        assert simulation.numeraire_engine.cache.keys() == keys

    def test_result_is_read_only(self, make_model, make_simulation, tenor):
        simulation = make_simulation(make_model(tenor), number_of_paths=100)
        numeraire = simulation.numeraire(1.0)
        assert numeraire.shape == (100,)
        with pytest.raises(ValueError):
            numeraire[0] = 1.0

    def test_distinct_processes_never_share_entries(self, make_model, make_simulation, tenor):
        model = make_model(tenor)
        first = make_simulation(model, number_of_paths=200, seed=1)
        second = make_simulation(model, number_of_paths=200, seed=2)
        first.numeraire(2.0)
        assert len(second.numeraire_engine.cache) == 0
        assert not np.array_equal(first.numeraire(2.0), second.numeraire(2.0))

    def test_engine_invalidates_on_new_owner(self, make_model, make_simulation, tenor):
        model = make_model(tenor)
        first = make_simulation(model, number_of_paths=200, seed=1)
        second = make_simulation(model, number_of_paths=200, seed=2)
        engine = NumeraireEngine(model)

        from_first = engine.numeraire(first.process, 2.0)
        assert len(engine.cache) > 0
        from_second = engine.numeraire(second.process, 2.0)
        np.testing.assert_array_equal(from_second, second.numeraire(2.0))
        assert not np.array_equal(from_first, from_second)

    def test_out_of_range_times(self, make_model, make_simulation, tenor):
        simulation = make_simulation(make_model(tenor), number_of_paths=10)
        with pytest.raises(OutOfRangeError):
            simulation.numeraire(-0.25)
        with pytest.raises(OutOfRangeError):
            simulation.numeraire(tenor.last_time + 1.0)

    def test_numeraire_at_origin(self, make_model, make_simulation, tenor):
        simulation = make_simulation(make_model(tenor, measure="SPOT"), number_of_paths=10)
        np.testing.assert_array_equal(simulation.numeraire(0.0), 1.0)

    def test_off_tenor_is_log_linear(self, make_model, make_simulation, tenor):
        simulation = make_simulation(make_model(tenor), number_of_paths=50)
        lower, upper = simulation.numeraire(1.0), simulation.numeraire(1.5)
        np.testing.assert_allclose(simulation.numeraire(1.2), lower ** 0.6 * upper ** 0.4, rtol=1e-12)


class TestZeroVolatility:

    @pytest.mark.parametrize("state_space", ["NORMAL", "LOGNORMAL"])
    def test_spot_reproduces_discount_curve(self, make_model, make_simulation, tenor, flat_curves, state_space):
        discount_curve, _ = flat_curves
        simulation = make_simulation(make_model(tenor, volatility=0.0, measure="SPOT", state_space=state_space),
                                     number_of_paths=20)
        for t in tenor:
            np.testing.assert_allclose(1.0 / simulation.numeraire(t), discount_curve.discount_factor(t), rtol=1e-12)

    @pytest.mark.parametrize("state_space", ["NORMAL", "LOGNORMAL"])
    def test_terminal_reproduces_discount_curve(self, make_model, make_simulation, tenor, flat_curves, state_space):
        discount_curve, _ = flat_curves
        simulation = make_simulation(make_model(tenor, volatility=0.0, measure="TERMINAL", state_space=state_space),
                                     number_of_paths=20)
        # N(T_n) = 1, N(T_0) = P(0, T_n)
        np.testing.assert_allclose(simulation.numeraire(tenor.last_time), 1.0)
        initial = simulation.numeraire(0.0)
        np.testing.assert_allclose(initial, discount_curve.discount_factor(tenor.last_time), rtol=1e-12)
        for t in tenor:
            np.testing.assert_allclose(initial / simulation.numeraire(t), discount_curve.discount_factor(t),
                                       rtol=1e-12)


class TestDiscountAdjustment:

    @pytest.mark.parametrize("measure", ["SPOT", "TERMINAL"])
    def test_expected_reciprocal_matches_curve(self, make_model, make_simulation, tenor, flat_curves, measure):
        discount_curve, _ = flat_curves
        model = make_model(tenor, measure=measure, discount_curve=discount_curve)
        simulation = make_simulation(model, number_of_paths=300)
        for t in (0.5, 1.25, 3.0, 5.0):
            assert np.mean(1.0 / simulation.numeraire(t)) == pytest.approx(discount_curve.discount_factor(t),
                                                                         rel=1e-12)

    def test_adjustments_are_exposed(self, make_model, make_simulation, tenor, flat_curves):
        discount_curve, _ = flat_curves
        simulation = make_simulation(make_model(tenor, discount_curve=discount_curve), number_of_paths=300)
        simulation.numeraire(3.0)
        simulation.numeraire(1.0)
        adjustments = simulation.numeraire_adjustments()
        assert list(adjustments) == [1.0, 3.0]
        with pytest.raises(TypeError):
            adjustments[2.0] = 1.0

    def test_clone_without_discount_curve(self, make_model, make_simulation, tenor, flat_curves):
        discount_curve, _ = flat_curves
        simulation = make_simulation(make_model(tenor, discount_curve=discount_curve), number_of_paths=300)
        plain = simulation.clone_with_modified_curve(discount_curve=None)
        assert plain.model.discount_curve is None
        assert plain.numeraire_adjustments() == {}
        assert not np.allclose(plain.numeraire(3.0), simulation.numeraire(3.0), rtol=1e-14, atol=0.0)


class FixedRateProcess:
    """모든 고정 금리가 rate인 경로 생성기 대역."""

    def __init__(self, rate, number_of_paths=4):
        self.rate = rate
        self.number_of_paths = number_of_paths

    def fixed_libor_at(self, time, component):
        return np.full(self.number_of_paths, self.rate)


class TestNonPositiveNumeraire:

    @pytest.mark.parametrize("measure, time", [("SPOT", 0.5), ("TERMINAL", 4.5)])
    def test_negative_compounding_factor_raises(self, make_model, tenor, measure, time):
        # δ = 0.5, L = -3 → 1 + δL = -0.5
        engine = NumeraireEngine(make_model(tenor, measure=measure, state_space="NORMAL"))
        process = FixedRateProcess(-3.0)
        with pytest.raises(NumericalFailure) as excinfo:
            engine.numeraire(process, time)
        assert excinfo.value.time == pytest.approx(time)
        assert len(engine.cache) == 0
