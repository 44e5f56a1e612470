#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
01_simulate_lmm.py
==================

평탄 시장(선도금리 3%, 로그정규 변동성 20%)에서 LMM을 시뮬레이션하고
SPOT / TERMINAL 두 측도에서 기준자산의 무차익 조건을 확인합니다.

* SPOT:     E[1/N(T_i)] ≈ P(0,T_i)
* TERMINAL: E[N(T_0)/N(T_i)] ≈ P(0,T_i)   (N(T_0) = P(0,T_n))
"""

import logging
import os
import sys

import numpy as np
import pandas as pd

# 프로젝트 루트 경로를 PYTHONPATH에 추가하여 lmm_pricing 패키지를 찾을 수 있도록 함
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..')))

from lmm_pricing.config import settings
from lmm_pricing.src.market import SimulationTimeGrid, TenorStructure, create_flat_curves
from lmm_pricing.src.models import LIBORMarketModel, create_flat_covariance_model
from lmm_pricing.src.simulation import LIBORModelMonteCarloSimulation


def build_simulation(measure: str, tenor: TenorStructure, forward_curve) -> LIBORModelMonteCarloSimulation:
    covariance_model = create_flat_covariance_model(
        tenor, settings.FLAT_VOLATILITY, settings.NUMBER_OF_FACTORS, settings.CORRELATION_DECAY
    )
    model = LIBORMarketModel(tenor, forward_curve, covariance_model,
                             measure=measure, state_space=settings.DEFAULT_STATE_SPACE)
    time_grid = SimulationTimeGrid.covering(tenor, settings.SIMULATION_DT)
    return LIBORModelMonteCarloSimulation.create(model, time_grid, settings.NUM_PATHS, settings.SEED,
                                                 n_jobs=settings.N_JOBS)


def main() -> None:
    logging.basicConfig(level=settings.LOG_LEVEL, format=settings.LOG_FORMAT)

    tenor = TenorStructure.uniform(settings.TENOR_START, settings.TENOR_END, settings.TENOR_PERIOD)
    discount_curve, forward_curve = create_flat_curves(settings.FLAT_FORWARD_RATE, settings.TENOR_PERIOD)
    print(f"✓ 테너 구조: {tenor} / 선도금리 {settings.FLAT_FORWARD_RATE:.2%}, 변동성 {settings.FLAT_VOLATILITY:.0%}")

    spot = build_simulation("SPOT", tenor, forward_curve)
    terminal = build_simulation("TERMINAL", tenor, forward_curve)
    terminal_initial = terminal.numeraire(tenor.first_time)

    rows = []
    for t in tenor:
        df = discount_curve.discount_factor(t)
        spot_value = float(np.mean(1.0 / spot.numeraire(t)))
        terminal_value = float(np.mean(terminal_initial / terminal.numeraire(t)))
        rows.append({
            "T": t,
            "P(0,T)": df,
            "SPOT E[1/N]": spot_value,
            "SPOT err(bp)": (spot_value - df) * 1e4,
            "TERMINAL E[N0/N]": terminal_value,
            "TERMINAL err(bp)": (terminal_value - df) * 1e4,
        })

    table = pd.DataFrame(rows).set_index("T")
    print("\n무차익 조건 점검 (경로 수 {:,}):".format(settings.NUM_PATHS))
    print(table.to_string(float_format=lambda x: f"{x:.6f}"))
    print(f"\n최대 절대 오차: SPOT {table['SPOT err(bp)'].abs().max():.2f}bp, "
          f"TERMINAL {table['TERMINAL err(bp)'].abs().max():.2f}bp")


if __name__ == "__main__":
    main()
