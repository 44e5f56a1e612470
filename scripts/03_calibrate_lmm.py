#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
03_calibrate_lmm.py
===================

4-파라미터 지수형 변동성과 지수 감쇠 상관으로 구성된 공분산 모형을
합성 캡렛 가격에 보정합니다. 목표 가격은 Black 공식과 임의의 변동성 곡선으로 만들며,
보정된 파라미터는 `data/calibrated_covariance_params.json`에 저장됩니다.
"""

import logging
import os
import sys
from math import log, sqrt

import numpy as np
import pandas as pd
from scipy.stats import norm

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..')))

from lmm_pricing.config import settings
from lmm_pricing.src.calibration import CalibrationAdapter, CalibrationItem, save_calibrated_parameters
from lmm_pricing.src.market import SimulationTimeGrid, TenorStructure, create_flat_curves
from lmm_pricing.src.models import (
    CovarianceModelFromVolatilityAndCorrelation,
    ExponentialDecayCorrelationModel,
    FourParameterExponentialVolatilityModel,
    LIBORMarketModel,
)
from lmm_pricing.src.simulation import LIBORModelMonteCarloSimulation


class Caplet:
    """δ · max(L(T; T, T+δ) - K, 0) 를 T+δ에 지급하는 캡렛 (몬테카를로 가격)."""

    def __init__(self, fixing: float, period_length: float, strike: float):
        self.fixing = fixing
        self.period_length = period_length
        self.strike = strike

    def get_value(self, simulation) -> float:
        payment = self.fixing + self.period_length
        libor = simulation.forward_rate(self.fixing, self.fixing, payment)
        payoff = self.period_length * np.maximum(libor - self.strike, 0.0)
        return float(np.mean(payoff / simulation.numeraire(payment)))


def black_caplet_price(forward: float, strike: float, volatility: float, expiry: float,
                       period_length: float, discount_factor: float) -> float:
    sd = volatility * sqrt(expiry)
    d1 = (log(forward / strike) + 0.5 * sd ** 2) / sd
    d2 = d1 - sd
    return discount_factor * period_length * (forward * norm.cdf(d1) - strike * norm.cdf(d2))


def main() -> None:
    logging.basicConfig(level=settings.LOG_LEVEL, format=settings.LOG_FORMAT)
    print("=" * 70)
    print("LMM 공분산 모형 보정 스크립트 시작")
    print("=" * 70)

    tenor = TenorStructure.uniform(settings.TENOR_START, 5.0, settings.TENOR_PERIOD)
    discount_curve, forward_curve = create_flat_curves(settings.FLAT_FORWARD_RATE, settings.TENOR_PERIOD)

    # 1. 합성 목표 가격 (만기별 Black 변동성이 험프 형태)
    print("\n[단계 1] 합성 캡렛 목표 가격 생성 중...")
    items = []
    for fixing in np.arange(1.0, tenor.last_time, settings.TENOR_PERIOD):
        black_vol = 0.18 + 0.04 * fixing * np.exp(-0.6 * fixing)
        caplet = Caplet(float(fixing), settings.TENOR_PERIOD, settings.FLAT_FORWARD_RATE)
        target = black_caplet_price(settings.FLAT_FORWARD_RATE, caplet.strike, black_vol, caplet.fixing,
                                    caplet.period_length, discount_curve(caplet.fixing + caplet.period_length))
        items.append(CalibrationItem(caplet, target))
    print(f"✓ 캡렛 {len(items)}개 생성 완료.")

    # 2. 초기 모형
    volatility_model = FourParameterExponentialVolatilityModel.from_dict(settings.INITIAL_VOLATILITY_PARAMS)
    correlation_model = ExponentialDecayCorrelationModel(tenor, settings.NUMBER_OF_FACTORS, settings.CORRELATION_DECAY)
    covariance_model = CovarianceModelFromVolatilityAndCorrelation(tenor, volatility_model, correlation_model)
    model = LIBORMarketModel(tenor, forward_curve, covariance_model, discount_curve=discount_curve)
    time_grid = SimulationTimeGrid.covering(tenor, settings.SIMULATION_DT)
    simulation = LIBORModelMonteCarloSimulation.create(model, time_grid, settings.CALIBRATION_NUM_PATHS,
                                                       settings.CALIBRATION_SEED)

    # 3. 보정
    print("\n[단계 2] 공분산 모형 보정 중...")
    calibrated = CalibrationAdapter(n_jobs=settings.N_JOBS).calibrate(simulation, items)
    parameters = calibrated.model.covariance_model.get_parameters()
    print("✓ 보정 완료: " + ", ".join(f"{name}={value:.6f}" for name, value in zip("abcd", parameters)))

    # 4. 결과 비교
    rows = []
    for item in items:
        rows.append({
            "expiry": item.product.fixing,
            "target": item.target_value,
            "initial": item.product.get_value(simulation),
            "calibrated": item.product.get_value(calibrated),
        })
    table = pd.DataFrame(rows).set_index("expiry")
    table["error(bp)"] = (table["calibrated"] - table["target"]) * 1e4
    print("\n캡렛 가격 비교:")
    print(table.to_string(float_format=lambda x: f"{x:.6f}"))

    path = save_calibrated_parameters(calibrated.model.covariance_model)
    print(f"\n✓ 보정된 파라미터가 {path} 파일에 저장되었습니다.")


if __name__ == "__main__":
    main()
