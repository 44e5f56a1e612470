# -*- coding: utf-8 -*-
"""
LMM 몬테카를로 시뮬레이션
=========================

모형(LIBORMarketModel), 브라운 운동, 경로 생성기와 세 엔진(드리프트, 기준자산,
테너 보간)을 조립하여 상품 계층이 사용하는 조회 인터페이스를 제공합니다.

* ``numeraire(time)``
* ``forward_rate(time, period_start, period_end)``
* ``libor(time_index, component)``
* ``tenor_structure``
* ``clone_with_modified_covariance`` / ``clone_with_modified_curve`` / ``clone_with_seed``

시뮬레이션 객체는 생성 후 변경되지 않습니다. clone 메서드는 새 경로 생성기와 새 기준자산
캐시를 갖는 새 객체를 반환하므로 서로 다른 실행 사이에 캐시 항목이 공유되지 않습니다.
"""

import threading
from typing import Mapping, Optional

import numpy as np

from ...config.settings import N_JOBS, NUM_PATHS, PATH_BLOCK_SIZE, SEED
from ..market.time_grid import SimulationTimeGrid, TenorStructure
from ..models.covariance import CovarianceModel
from ..models.lmm import LIBORMarketModel, UNCHANGED
from .brownian import BrownianMotion
from .interpolation import TenorInterpolator
from .numeraire import NumeraireEngine
from .process import EulerSchemeProcess, ForwardRateState


class LIBORModelMonteCarloSimulation:
    """LMM 경로 시뮬레이션과 기준자산/선도금리 조회."""

    def __init__(self, model: LIBORMarketModel, brownian_motion: BrownianMotion,
                 n_jobs: int = N_JOBS, block_size: int = PATH_BLOCK_SIZE):
        self.model = model
        self.brownian_motion = brownian_motion
        self.n_jobs = n_jobs
        self.block_size = block_size
        self.process = EulerSchemeProcess(model, brownian_motion, n_jobs=n_jobs, block_size=block_size)
        self.numeraire_engine = NumeraireEngine(model)
        self.interpolator = TenorInterpolator(model)
        self._integrated_covariance: Optional[np.ndarray] = None
        self._covariance_lock = threading.Lock()

    @classmethod
    def create(cls, model: LIBORMarketModel, time_grid: SimulationTimeGrid,
               number_of_paths: int = NUM_PATHS, seed: int = SEED, antithetic: bool = False,
               **kwargs) -> "LIBORModelMonteCarloSimulation":
        brownian_motion = BrownianMotion(time_grid, model.number_of_factors, number_of_paths, seed, antithetic)
        return cls(model, brownian_motion, **kwargs)

    # --- 조회 ---

    @property
    def tenor_structure(self) -> TenorStructure:
        return self.model.tenor

    @property
    def time_grid(self) -> SimulationTimeGrid:
        return self.process.time_grid

    @property
    def number_of_paths(self) -> int:
        return self.process.number_of_paths

    def numeraire(self, time: float) -> np.ndarray:
        return self.numeraire_engine.numeraire(self.process, time)

    def numeraire_adjustments(self) -> Mapping[float, float]:
        return self.numeraire_engine.numeraire_adjustments()

    def forward_rate(self, time: float, period_start: float, period_end: float) -> np.ndarray:
        return self.interpolator.forward_rate(self.process, time, period_start, period_end)

    def libor(self, time_index: int, component: int) -> np.ndarray:
        return self.process.libor(time_index, component)

    def state(self, time_index: int) -> ForwardRateState:
        return self.process.state(time_index)

    def drift(self, time_index: int, realization: np.ndarray) -> np.ndarray:
        return self.process.drift_engine.drift(time_index, realization)

    def integrated_libor_covariance(self) -> np.ndarray:
        """∫_0^{t_i} λ_j·λ_l ds 의 누적값 (steps, components, components). 결정적 로딩 기준."""
        with self._covariance_lock:
            if self._integrated_covariance is None:
                self._integrated_covariance = self._compute_integrated_covariance()
            return self._integrated_covariance

    def _compute_integrated_covariance(self) -> np.ndarray:
        tenor = self.model.tenor
        n = tenor.number_of_components
        grid = self.time_grid
        covariance = np.zeros((grid.number_of_time_steps, n, n))
        for time_index in range(grid.number_of_time_steps):
            time = grid.time(time_index)
            loadings = np.zeros((n, self.model.number_of_factors))
            for component in range(tenor.first_live_component(time), n):
                loadings[component] = np.asarray(self.model.factor_loading(time, component), dtype=float).reshape(-1)
            covariance[time_index] = loadings @ loadings.T * grid.time_step(time_index)
        covariance = np.cumsum(covariance, axis=0)
        covariance.flags.writeable = False
        return covariance

    # --- 불변 갱신 ---

    def _clone_with_model(self, model: LIBORMarketModel) -> "LIBORModelMonteCarloSimulation":
        return LIBORModelMonteCarloSimulation(model, self.brownian_motion, self.n_jobs, self.block_size)

    def clone_with_modified_covariance(self, covariance_model: CovarianceModel) -> "LIBORModelMonteCarloSimulation":
        """같은 난수를 사용하고 공분산 모형만 바꾼 새 시뮬레이션."""
        return self._clone_with_model(self.model.clone_with_modified_covariance(covariance_model))

    def clone_with_modified_curve(self, forward_curve=UNCHANGED, discount_curve=UNCHANGED
                                  ) -> "LIBORModelMonteCarloSimulation":
        return self._clone_with_model(self.model.clone_with_modified_curve(forward_curve, discount_curve))

    def clone_with_seed(self, seed: int) -> "LIBORModelMonteCarloSimulation":
        return LIBORModelMonteCarloSimulation(self.model, self.brownian_motion.clone_with_seed(seed),
                                              self.n_jobs, self.block_size)
