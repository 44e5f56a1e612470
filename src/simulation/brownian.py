# -*- coding: utf-8 -*-
"""
브라운 운동 증분 생성기
=======================

시뮬레이션 격자의 각 스텝에 대해 서로 독립인 표준 브라운 운동 증분
ΔW_k ~ N(0, Δt) 를 (factors, paths) 배열로 제공합니다.
같은 시드는 항상 같은 증분을 만듭니다 (numpy Generator 사용).
"""

import threading
from typing import Optional

import numpy as np

from ...config.settings import NUM_PATHS, SEED
from ..exceptions import ConfigurationError, OutOfRangeError
from ..market.time_grid import SimulationTimeGrid


class BrownianMotion:
    """시드가 고정된 다요인 브라운 운동.

    antithetic=True이면 경로의 뒤쪽 절반을 앞쪽 절반의 부호 반전으로 채웁니다.
    """

    def __init__(self, time_grid: SimulationTimeGrid, number_of_factors: int,
                 number_of_paths: int = NUM_PATHS, seed: int = SEED, antithetic: bool = False):
        if number_of_factors < 1:
            raise ConfigurationError(f"팩터 수는 1 이상이어야 합니다: {number_of_factors}")
        if number_of_paths < 1:
            raise ConfigurationError(f"경로 수는 1 이상이어야 합니다: {number_of_paths}")
        if antithetic and number_of_paths % 2 != 0:
            raise ConfigurationError("antithetic 경로 수는 짝수여야 합니다.")
        self.time_grid = time_grid
        self.number_of_factors = int(number_of_factors)
        self.number_of_paths = int(number_of_paths)
        self.seed = seed
        self.antithetic = antithetic
        self._increments: Optional[np.ndarray] = None
        self._lock = threading.Lock()

    def _generate(self) -> np.ndarray:
        rng = np.random.default_rng(self.seed)
        steps = self.time_grid.number_of_time_steps
        sqrt_dt = np.sqrt(np.diff(self.time_grid.times))[:, None, None]
        if self.antithetic:
            half = rng.standard_normal((steps, self.number_of_factors, self.number_of_paths // 2))
            normals = np.concatenate([half, -half], axis=2)
        else:
            normals = rng.standard_normal((steps, self.number_of_factors, self.number_of_paths))
        increments = normals * sqrt_dt
        increments.flags.writeable = False
        return increments

    @property
    def increments(self) -> np.ndarray:
        """모든 스텝의 증분 (steps, factors, paths)."""
        with self._lock:
            if self._increments is None:
                self._increments = self._generate()
            return self._increments

    def increment(self, time_index: int) -> np.ndarray:
        """[t_i, t_{i+1}] 구간의 증분 (factors, paths)."""
        if time_index < 0 or time_index >= self.time_grid.number_of_time_steps:
            raise OutOfRangeError(f"증분 인덱스가 범위를 벗어났습니다: {time_index}")
        return self.increments[time_index]

    def clone_with_seed(self, seed: int) -> "BrownianMotion":
        return BrownianMotion(self.time_grid, self.number_of_factors, self.number_of_paths, seed, self.antithetic)
