#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
02_plot_forward_paths.py
========================

평탄 시장 LMM에서 몇 개 선도금리의 표본 경로와 분위수 띠를 그립니다.
고정 시점 이후 선도금리가 더 이상 변하지 않는 것을 확인할 수 있습니다.
"""

import logging
import os
import sys

import matplotlib.pyplot as plt
import numpy as np

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..')))

from lmm_pricing.config import settings
from lmm_pricing.src.market import SimulationTimeGrid, TenorStructure, create_flat_curves
from lmm_pricing.src.models import LIBORMarketModel, create_flat_covariance_model
from lmm_pricing.src.simulation import LIBORModelMonteCarloSimulation

NUM_SAMPLE_PATHS = 20
COMPONENTS_TO_PLOT = [3, 9, 15]


def main() -> None:
    logging.basicConfig(level=settings.LOG_LEVEL, format=settings.LOG_FORMAT)

    tenor = TenorStructure.uniform(settings.TENOR_START, settings.TENOR_END, settings.TENOR_PERIOD)
    _, forward_curve = create_flat_curves(settings.FLAT_FORWARD_RATE, settings.TENOR_PERIOD)
    covariance_model = create_flat_covariance_model(tenor, settings.FLAT_VOLATILITY, 2, settings.CORRELATION_DECAY)
    model = LIBORMarketModel(tenor, forward_curve, covariance_model)
    time_grid = SimulationTimeGrid.covering(tenor, settings.SIMULATION_DT / 5)
    simulation = LIBORModelMonteCarloSimulation.create(model, time_grid, 2000, settings.SEED)
    print(f"✓ 시뮬레이션 완료: 경로 {simulation.number_of_paths}개, 스텝 {time_grid.number_of_time_steps}개")

    times = time_grid.times
    fig, axs = plt.subplots(1, len(COMPONENTS_TO_PLOT), figsize=(16, 5), sharey=True)
    fig.suptitle('LMM Forward Rate Paths (flat 3%, lognormal 20%)', fontsize=14)

    for ax, component in zip(axs, COMPONENTS_TO_PLOT):
        paths = np.array([simulation.libor(i, component) for i in range(time_grid.number_of_times)])
        lower, median, upper = np.percentile(paths, [5, 50, 95], axis=1)

        ax.plot(times, paths[:, :NUM_SAMPLE_PATHS] * 100, color='steelblue', alpha=0.35, linewidth=0.8)
        ax.fill_between(times, lower * 100, upper * 100, color='orange', alpha=0.2, label='5%-95%')
        ax.plot(times, median * 100, color='darkred', label='median')
        ax.axvline(x=tenor.time(component), color='gray', linestyle=':', linewidth=1.2)
        ax.set_title(f'L_{component} [{tenor.time(component):g}Y, {tenor.time(component + 1):g}Y]')
        ax.set_xlabel('Time (Y)')
        ax.grid(True, linestyle='--', alpha=0.6)

    axs[0].set_ylabel('Forward rate (%)')
    axs[0].legend(loc='upper left')
    plt.tight_layout(rect=[0, 0.03, 1, 0.95])
    plt.show()


if __name__ == "__main__":
    main()
