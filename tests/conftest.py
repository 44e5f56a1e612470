# tests/conftest.py
"""공통 픽스처: 평탄 시장(3% 선도, 20% 변동성), 테너 구조, 시뮬레이션 생성기."""

import pytest

from lmm_pricing.src.market import SimulationTimeGrid, TenorStructure, create_flat_curves
from lmm_pricing.src.models import LIBORMarketModel, create_flat_covariance_model
from lmm_pricing.src.simulation import LIBORModelMonteCarloSimulation

FORWARD_RATE = 0.03
VOLATILITY = 0.20
PERIOD = 0.5


@pytest.fixture
def tenor():
    return TenorStructure.uniform(0.0, 5.0, PERIOD)


@pytest.fixture
def long_tenor():
    return TenorStructure.uniform(0.0, 10.0, PERIOD)


@pytest.fixture
def flat_curves():
    """(할인곡선, 선도곡선)"""
    return create_flat_curves(FORWARD_RATE, PERIOD)


@pytest.fixture
def make_model(flat_curves):
    def _make(tenor, volatility=VOLATILITY, number_of_factors=1, decay=0.0, **kwargs):
        discount_curve, forward_curve = flat_curves
        covariance_model = create_flat_covariance_model(tenor, volatility, number_of_factors, decay)
        return LIBORMarketModel(tenor, forward_curve, covariance_model, **kwargs)
    return _make


@pytest.fixture
def make_simulation():
    def _make(model, number_of_paths=1000, seed=3141, dt=PERIOD, **kwargs):
        time_grid = SimulationTimeGrid.covering(model.tenor, dt)
        return LIBORModelMonteCarloSimulation.create(model, time_grid, number_of_paths, seed, **kwargs)
    return _make
