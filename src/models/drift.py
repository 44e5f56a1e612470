# -*- coding: utf-8 -*-
"""
드리프트 엔진
=============

시뮬레이션 시간 인덱스 i와 현재 선도금리 실현값 L(t_i)이 주어졌을 때
무차익 조건이 요구하는 드리프트 벡터 μ(t_i)를 계산합니다.

* 이미 고정된 성분(T_j ≤ t_i)의 드리프트는 0입니다.
* 측도별 부분합 점화식은 ``measure`` 모듈의 전략 객체가 수행합니다.
* 로그정규 상태공간에서는 모든 살아있는 성분에 -½|λ_j|² 를 더합니다.
* 결과에 NaN/Inf가 있으면 시점과 성분을 담아 NumericalFailure를 발생시킵니다.

비용은 스텝당 O(팩터 수 × 성분 수) 입니다.
"""

from typing import List, Optional

import numpy as np

from ..exceptions import NumericalFailure, OutOfRangeError
from ..market.time_grid import SimulationTimeGrid


class DriftEngine:
    """LIBORMarketModel과 시뮬레이션 격자로부터 스텝별 드리프트를 계산합니다."""

    def __init__(self, model, time_grid: SimulationTimeGrid):
        self.model = model
        self.time_grid = time_grid

    def factor_loadings(self, time: float, realization: np.ndarray, first_component: int = 0) -> List[np.ndarray]:
        """성분별 팩터 로딩을 (factors, paths|1) 형태로 모아 반환합니다. 고정된 성분은 None."""
        n = self.model.tenor.number_of_components
        loadings: List[np.ndarray] = [None] * n
        for component in range(first_component, n):
            loading = np.asarray(self.model.covariance_model.factor_loading(time, component, realization), dtype=float)
            loadings[component] = loading.reshape(loading.shape[0], -1)
        return loadings

    def drift(self, time_index: int, realization: np.ndarray) -> np.ndarray:
        """시간 인덱스 time_index에서의 드리프트 (components, paths)."""
        if time_index < 0 or time_index >= self.time_grid.number_of_times:
            raise OutOfRangeError(f"시간 인덱스가 범위를 벗어났습니다: {time_index}")
        return self.drift_at(self.time_grid.time(time_index), realization)

    def drift_at(self, time: float, realization: np.ndarray,
                 loadings: Optional[List[np.ndarray]] = None) -> np.ndarray:
        """시점 time의 드리프트. loadings가 주어지면 팩터 로딩을 다시 계산하지 않습니다."""
        model = self.model
        tenor = model.tenor
        realization = np.asarray(realization, dtype=float)
        n = tenor.number_of_components
        if realization.ndim == 1:
            # 단일 경로 벡터 (n,) 는 (n, 1) 로 계산한 뒤 되돌림
            return self.drift_at(time, realization.reshape(-1, 1), loadings)[:, 0]
        if realization.shape[0] != n:
            raise OutOfRangeError(f"실현값의 성분 수({realization.shape[0]})가 테너 성분 수({n})와 다릅니다.")

        drift = np.zeros_like(realization)
        first = tenor.first_live_component(time)
        if first >= n:
            return drift

        if loadings is None:
            loadings = self.factor_loadings(time, realization, first)
        weights: List[np.ndarray] = [None] * n
        for component in range(first, n):
            period_length = tenor.period_length(component)
            libor = realization[component]
            one_step_measure_transform = period_length / (1.0 + period_length * libor)
            weights[component] = one_step_measure_transform * model.state_space_transform.measure_weight(libor)

        model.measure_strategy.accumulate_drift(first, weights, loadings, drift)

        for component in range(first, n):
            variance = np.sum(loadings[component] ** 2, axis=0)
            drift[component] = drift[component] + model.state_space_transform.ito_correction(variance)

        self._check_finite(time, drift, first)
        return drift

    @staticmethod
    def _check_finite(time: float, drift: np.ndarray, first: int) -> None:
        bad = ~np.isfinite(drift[first:])
        if bad.any():
            component = first + int(np.argmax(bad.any(axis=1)))
            raise NumericalFailure("드리프트 계산 중 유한하지 않은 값이 발생했습니다", time=time, component=component)
