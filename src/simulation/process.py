# -*- coding: utf-8 -*-
"""
오일러 경로 생성기
==================

LMM의 선도금리 경로를 오일러-마루야마 방식으로 생성합니다::

    X_j(t_{i+1}) = X_j(t_i) + μ_j(t_i) Δt + Σ_k λ_{j,k}(t_i) ΔW_k
    L_j(t_{i+1}) = g(X_j(t_{i+1}))

* 시간 스텝은 경로마다 순차적으로 진행합니다 (스텝 i의 드리프트가 스텝 i의 실현값에 의존).
* 서로 다른 경로는 독립이므로 경로 블록을 joblib 스레드로 병렬 처리합니다.
* 고정 시점 T_j ≤ t_i를 지난 성분은 더 이상 변하지 않습니다.
* 생성된 ``ForwardRateState`` 슬라이스는 읽기 전용이며 이후 수정되지 않습니다.

경로 생성은 처음 조회할 때 한 번만 수행됩니다.
"""

import logging
import threading
from dataclasses import dataclass
from typing import List, Optional

import numpy as np
from joblib import Parallel, delayed

from ...config.settings import N_JOBS, PATH_BLOCK_SIZE
from ..exceptions import ConfigurationError, OutOfRangeError
from ..models.drift import DriftEngine
from ..models.lmm import DriftApproximation, LIBORMarketModel
from .brownian import BrownianMotion

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ForwardRateState:
    """시간 인덱스 하나의 선도금리 실현값 (components, paths). values는 읽기 전용."""

    time_index: int
    time: float
    values: np.ndarray

    def component(self, component: int) -> np.ndarray:
        if component < 0 or component >= self.values.shape[0]:
            raise OutOfRangeError(f"성분 인덱스가 범위를 벗어났습니다: {component}")
        return self.values[component]


class EulerSchemeProcess:
    """LIBORMarketModel과 BrownianMotion으로부터 선도금리 경로를 생성합니다."""

    def __init__(self, model: LIBORMarketModel, brownian_motion: BrownianMotion,
                 n_jobs: int = N_JOBS, block_size: int = PATH_BLOCK_SIZE):
        if brownian_motion.number_of_factors != model.number_of_factors:
            raise ConfigurationError(
                f"브라운 운동 팩터 수({brownian_motion.number_of_factors})와 "
                f"공분산 모형 팩터 수({model.number_of_factors})가 다릅니다."
            )
        brownian_motion.time_grid.validate_covers(model.tenor)
        self.model = model
        self.brownian_motion = brownian_motion
        self.time_grid = brownian_motion.time_grid
        self.drift_engine = DriftEngine(model, self.time_grid)
        self.n_jobs = n_jobs
        self.block_size = max(int(block_size), 1)
        self._states: Optional[List[ForwardRateState]] = None
        self._lock = threading.Lock()

    @property
    def number_of_paths(self) -> int:
        return self.brownian_motion.number_of_paths

    @property
    def number_of_factors(self) -> int:
        return self.brownian_motion.number_of_factors

    # --- 경로 생성 ---

    def _evolve_block(self, paths: slice) -> List[np.ndarray]:
        model = self.model
        tenor = model.tenor
        n = model.number_of_components
        number_of_paths = paths.stop - paths.start

        state = np.repeat(model.initial_state()[:, None], number_of_paths, axis=1)
        realization = np.vstack([model.to_observable(j, state[j]) for j in range(n)])
        block_states = [realization]

        for time_index in range(self.time_grid.number_of_time_steps):
            time = self.time_grid.time(time_index)
            dt = self.time_grid.time_step(time_index)
            first = tenor.first_live_component(time)
            if first >= n:
                block_states.append(realization)
                continue

            loadings = self.drift_engine.factor_loadings(time, realization, first)
            drift = self.drift_engine.drift_at(time, realization, loadings)
            brownian_increment = self.brownian_motion.increment(time_index)[:, paths]

            for j in range(first, n):
                state[j] = state[j] + drift[j] * dt + np.sum(loadings[j] * brownian_increment, axis=0)

            if model.drift_approximation is DriftApproximation.PREDICTOR_CORRECTOR:
                predictor = realization.copy()
                for j in range(first, n):
                    predictor[j] = model.to_observable(j, state[j])
                drift_with_predictor = self.drift_engine.drift_at(time, predictor)
                for j in range(first, n):
                    state[j] = state[j] + 0.5 * (drift_with_predictor[j] - drift[j]) * dt

            next_realization = realization.copy()
            for j in range(first, n):
                next_realization[j] = model.to_observable(j, state[j])
            realization = next_realization
            block_states.append(realization)

        return block_states

    def _generate(self) -> List[ForwardRateState]:
        number_of_paths = self.number_of_paths
        blocks = [slice(start, min(start + self.block_size, number_of_paths))
                  for start in range(0, number_of_paths, self.block_size)]
        logger.debug("경로 생성: 경로 %d개, 블록 %d개, 스텝 %d개",
                     number_of_paths, len(blocks), self.time_grid.number_of_time_steps)

        if len(blocks) == 1:
            results = [self._evolve_block(blocks[0])]
        else:
            results = Parallel(n_jobs=self.n_jobs, prefer="threads")(
                delayed(self._evolve_block)(block) for block in blocks
            )

        states = []
        for time_index in range(self.time_grid.number_of_times):
            values = np.concatenate([block[time_index] for block in results], axis=1)
            values.flags.writeable = False
            states.append(ForwardRateState(time_index, self.time_grid.time(time_index), values))
        return states

    @property
    def states(self) -> List[ForwardRateState]:
        with self._lock:
            if self._states is None:
                self._states = self._generate()
            return self._states

    # --- 조회 ---

    def state(self, time_index: int) -> ForwardRateState:
        if time_index < 0 or time_index >= self.time_grid.number_of_times:
            raise OutOfRangeError(f"시간 인덱스가 범위를 벗어났습니다: {time_index}")
        return self.states[time_index]

    def libor(self, time_index: int, component: int) -> np.ndarray:
        """시간 인덱스 time_index에서 선도금리 L_component의 실현값 (paths,)."""
        return self.state(time_index).component(component)

    def libor_at(self, time: float, component: int) -> np.ndarray:
        """시점 time 이하의 마지막 격자점에서의 L_component."""
        return self.libor(self.time_grid.index_at_or_before(time), component)

    def fixed_libor_at(self, time: float, component: int) -> np.ndarray:
        """시점 time 이상의 첫 격자점에서의 L_component (고정 시점 조회용)."""
        return self.libor(self.time_grid.index_at_or_after(time), component)
