"""
보정 어댑터 테스트

검증 항목:
1. 비파라미터형 공분산 모형 보정 요청 → ConfigurationError
2. 같은 난수로 만든 목표값에서 변동성 파라미터 복원
3. 보정 결과 파라미터 JSON 저장/로드
"""

import numpy as np
import pytest

from lmm_pricing.src.calibration import CalibrationAdapter, CalibrationItem, adapter
from lmm_pricing.src.calibration import load_calibrated_parameters, save_calibrated_parameters
from lmm_pricing.src.exceptions import ConfigurationError
from lmm_pricing.src.market import TenorStructure
from lmm_pricing.src.models import CovarianceModel, LIBORMarketModel, create_flat_covariance_model


class Caplet:
    """δ · max(L(T; T, T+δ) - K, 0) 를 T+δ에 지급하는 캡렛."""

    def __init__(self, fixing: float, period_length: float, strike: float):
        self.fixing = fixing
        self.period_length = period_length
        self.strike = strike

    def get_value(self, simulation) -> float:
        payment = self.fixing + self.period_length
        libor = simulation.forward_rate(self.fixing, self.fixing, payment)
        payoff = self.period_length * np.maximum(libor - self.strike, 0.0)
        return float(np.mean(payoff / simulation.numeraire(payment)))


class ConstantLoadingCovariance(CovarianceModel):
    """파라미터를 노출하지 않는 단순 공분산 모형."""

    def factor_loading(self, time, component, realization=None):
        self._check_component(component)
        return np.full(self.number_of_factors, 0.2 if self.tenor.time(component) > time else 0.0)


@pytest.fixture
def calibration_tenor():
    return TenorStructure.uniform(0.0, 3.0, 0.5)


@pytest.fixture
def caplets():
    return [Caplet(fixing, 0.5, 0.03) for fixing in (0.5, 1.0, 1.5, 2.0)]


class TestCalibrationAdapter:

    def test_non_parametric_model_raises(self, flat_curves, make_simulation, calibration_tenor, caplets):
        _, forward_curve = flat_curves
        model = LIBORMarketModel(calibration_tenor, forward_curve, ConstantLoadingCovariance(calibration_tenor, 1))
        simulation = make_simulation(model, number_of_paths=100)
        items = [CalibrationItem(caplet, 0.001) for caplet in caplets]
        with pytest.raises(ConfigurationError):
            CalibrationAdapter().calibrate(simulation, items)

    def test_empty_items_raise(self, make_model, make_simulation, calibration_tenor):
        simulation = make_simulation(make_model(calibration_tenor), number_of_paths=100)
        with pytest.raises(ConfigurationError):
            CalibrationAdapter().calibrate(simulation, [])

    def test_recovers_volatility(self, make_model, make_simulation, calibration_tenor, caplets):
        true_simulation = make_simulation(make_model(calibration_tenor, volatility=0.25), number_of_paths=500, seed=7)
        items = [CalibrationItem(caplet, caplet.get_value(true_simulation)) for caplet in caplets]

        start_simulation = true_simulation.clone_with_modified_covariance(
            create_flat_covariance_model(calibration_tenor, 0.15)
        )
        calibrated = CalibrationAdapter(max_iterations=100).calibrate(start_simulation, items)

        assert calibrated is not start_simulation
        assert calibrated.brownian_motion is start_simulation.brownian_motion
        assert calibrated.model.covariance_model.get_parameters()[0] == pytest.approx(0.25, abs=1e-3)
        # 시작 시뮬레이션은 그대로
        assert start_simulation.model.covariance_model.get_parameters()[0] == 0.15
        for item in items:
            assert item.product.get_value(calibrated) == pytest.approx(item.target_value, rel=1e-2)


class TestParameterFile:

    def test_save_and_load(self, tmp_path, monkeypatch, calibration_tenor):
        monkeypatch.setattr(adapter, "DATA_DIR", str(tmp_path))
        covariance_model = create_flat_covariance_model(calibration_tenor, 0.22)
        path = save_calibrated_parameters(covariance_model, "params.json")
        assert path == str(tmp_path / "params.json")
        assert load_calibrated_parameters("params.json") == [0.22]

    def test_missing_file(self, tmp_path, monkeypatch):
        monkeypatch.setattr(adapter, "DATA_DIR", str(tmp_path))
        with pytest.raises(FileNotFoundError):
            load_calibrated_parameters("missing.json")
