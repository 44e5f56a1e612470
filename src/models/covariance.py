# -*- coding: utf-8 -*-
"""
공분산(팩터 로딩) 모형
======================

LMM의 확산항 λ_j(t)를 제공하는 교체 가능한 공분산 모형들입니다.
코어 엔진은 ``factor_loading(time, component, realization)`` 만을 사용합니다.

순간 공분산은 팩터 로딩의 내적입니다::

    λ_j · λ_l = Σ_k λ_{j,k} λ_{l,k} = σ_j σ_l ρ_{j,l}

구성
----

* ``CovarianceModel``: 공통 인터페이스 (ABC)
* ``ParametricCovarianceModel``: 파라미터 벡터를 노출하고 일반 보정을 수행하는 모형
* ``ConstantVolatilityModel`` / ``FourParameterExponentialVolatilityModel``: 변동성 σ_j(t)
* ``ExponentialDecayCorrelationModel``: ρ_{i,j} = exp(-β|T_i - T_j|) 의 팩터 축소 분해
* ``CovarianceModelFromVolatilityAndCorrelation``: λ_{j,k} = σ_j f_{j,k}
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional, Sequence

import numpy as np
from joblib import Parallel, delayed
from scipy.optimize import minimize

from ...config.settings import (
    CALIBRATION_ACCURACY,
    CALIBRATION_MAX_ITERATIONS,
    N_JOBS,
    PSD_TOLERANCE,
)
from ..exceptions import ConfigurationError, NumericalFailure, OutOfRangeError
from ..market.time_grid import TenorStructure

logger = logging.getLogger(__name__)


class CovarianceModel(ABC):
    """팩터 로딩을 제공하는 공분산 모형의 공통 인터페이스."""

    def __init__(self, tenor: TenorStructure, number_of_factors: int):
        self.tenor = tenor
        self.number_of_factors = int(number_of_factors)

    @property
    def number_of_components(self) -> int:
        return self.tenor.number_of_components

    def _check_component(self, component: int) -> None:
        if component < 0 or component >= self.number_of_components:
            raise OutOfRangeError(f"성분 인덱스가 범위를 벗어났습니다: {component}")

    @abstractmethod
    def factor_loading(self, time: float, component: int, realization: Optional[np.ndarray] = None) -> np.ndarray:
        """시점 time에서 성분 component의 팩터 로딩 벡터 (factors,) 또는 (factors, paths)."""
        pass

    def covariance(self, time: float, component1: int, component2: int,
                   realization: Optional[np.ndarray] = None) -> np.ndarray:
        """순간 공분산 λ_i · λ_j."""
        loading1 = np.asarray(self.factor_loading(time, component1, realization))
        loading2 = np.asarray(self.factor_loading(time, component2, realization))
        return np.sum(loading1 * loading2, axis=0)


class ParametricCovarianceModel(CovarianceModel):
    """파라미터 벡터로 표현되고 보정이 가능한 공분산 모형."""

    @abstractmethod
    def get_parameters(self) -> np.ndarray:
        pass

    @abstractmethod
    def clone_with_parameters(self, parameters: Sequence[float]) -> "ParametricCovarianceModel":
        pass

    def get_clone_calibrated(self, simulation, calibration_items,
                             max_iterations: int = CALIBRATION_MAX_ITERATIONS,
                             accuracy: float = CALIBRATION_ACCURACY,
                             n_jobs: int = N_JOBS) -> "ParametricCovarianceModel":
        """가중 제곱오차 합을 최소화하는 파라미터로 보정된 새 모형을 반환합니다.

        각 반복에서 ``simulation.clone_with_modified_covariance``로 같은 난수를 쓰는
        시뮬레이션을 만들고, 상품 가치를 joblib으로 병렬 계산합니다.
        """
        items = list(calibration_items)
        if not items:
            raise ConfigurationError("보정 대상 상품이 비어 있습니다.")

        def _error(item, calibrated_simulation) -> float:
            value = item.product.get_value(calibrated_simulation)
            return item.weight * (value - item.target_value) ** 2

        def objective(parameters: np.ndarray) -> float:
            try:
                candidate = self.clone_with_parameters(parameters)
            except ConfigurationError:
                # 허용되지 않는 파라미터 영역
                return 1e10
            calibrated_simulation = simulation.clone_with_modified_covariance(candidate)
            errors = Parallel(n_jobs=n_jobs, prefer="threads")(
                delayed(_error)(item, calibrated_simulation) for item in items
            )
            return float(sum(errors))

        x0 = self.get_parameters()
        logger.info("공분산 모형 보정 시작: 파라미터 %d개, 상품 %d개", len(x0), len(items))
        result = minimize(
            objective,
            x0,
            method='Nelder-Mead',
            options={'maxiter': max_iterations, 'adaptive': True, 'xatol': accuracy, 'fatol': accuracy}
        )
        logger.info("보정 종료: 반복 %d회, 오차 %.3e (%s)", result.nit, result.fun, result.message)
        return self.clone_with_parameters(result.x)


# --- 변동성 모형 ---

class VolatilityModel(ABC):
    """σ_j(t): 시점 t에서 성분 j의 (스칼라) 변동성."""

    @abstractmethod
    def volatility(self, time: float, fixing_time: float) -> float:
        pass

    @abstractmethod
    def get_parameters(self) -> np.ndarray:
        pass

    @abstractmethod
    def clone_with_parameters(self, parameters: Sequence[float]) -> "VolatilityModel":
        pass


class ConstantVolatilityModel(VolatilityModel):
    """고정 전까지 일정한 변동성. 고정된 성분의 변동성은 0."""

    def __init__(self, sigma: float):
        if sigma < 0.0:
            raise ConfigurationError(f"변동성은 음수일 수 없습니다: {sigma}")
        self.sigma = float(sigma)

    def volatility(self, time: float, fixing_time: float) -> float:
        return self.sigma if fixing_time > time else 0.0

    def get_parameters(self) -> np.ndarray:
        return np.array([self.sigma])

    def clone_with_parameters(self, parameters: Sequence[float]) -> "ConstantVolatilityModel":
        return ConstantVolatilityModel(float(parameters[0]))


class FourParameterExponentialVolatilityModel(VolatilityModel):
    """σ(τ) = (a + b τ) exp(-c τ) + d, τ = T_j - t (만기까지 남은 시간)."""

    def __init__(self, a: float, b: float, c: float, d: float):
        if c < 0.0:
            raise ConfigurationError(f"감쇠 계수 c는 음수일 수 없습니다: {c}")
        self.a, self.b, self.c, self.d = float(a), float(b), float(c), float(d)

    @classmethod
    def from_dict(cls, params: Dict[str, float]) -> "FourParameterExponentialVolatilityModel":
        return cls(params["a"], params["b"], params["c"], params["d"])

    def volatility(self, time: float, fixing_time: float) -> float:
        tau = fixing_time - time
        if tau <= 0.0:
            # 이미 고정된 선도금리
            return 0.0
        return (self.a + self.b * tau) * np.exp(-self.c * tau) + self.d

    def get_parameters(self) -> np.ndarray:
        return np.array([self.a, self.b, self.c, self.d])

    def clone_with_parameters(self, parameters: Sequence[float]) -> "FourParameterExponentialVolatilityModel":
        return FourParameterExponentialVolatilityModel(*[float(p) for p in parameters])


# --- 상관 모형 ---

class ExponentialDecayCorrelationModel:
    """ρ_{i,j} = exp(-decay |T_i - T_j|) 를 고유분해하여 상위 팩터만 남긴 모형.

    남긴 팩터 로딩 행은 다시 단위 길이로 정규화하여 대각 상관이 1이 되도록 합니다.
    고유값이 -PSD_TOLERANCE 보다 작으면 NumericalFailure를 발생시킵니다.
    """

    def __init__(self, tenor: TenorStructure, number_of_factors: int, decay: float):
        n = tenor.number_of_components
        if number_of_factors < 1 or number_of_factors > n:
            raise ConfigurationError(f"팩터 수는 1 이상 {n} 이하여야 합니다: {number_of_factors}")
        if decay < 0.0:
            raise ConfigurationError(f"상관 감쇠 계수는 음수일 수 없습니다: {decay}")
        self.tenor = tenor
        self.number_of_factors = int(number_of_factors)
        self.decay = float(decay)

        fixings = tenor.times[:-1]
        correlation = np.exp(-self.decay * np.abs(fixings[:, None] - fixings[None, :]))
        self.factor_matrix = self._reduce(correlation, self.number_of_factors)
        self.factor_matrix.flags.writeable = False

    @staticmethod
    def _reduce(correlation: np.ndarray, number_of_factors: int) -> np.ndarray:
        eigenvalues, eigenvectors = np.linalg.eigh(correlation)
        if eigenvalues.min() < -PSD_TOLERANCE:
            raise NumericalFailure(f"상관행렬이 양반정치가 아닙니다 (최소 고유값 {eigenvalues.min():.3e})")
        order = np.argsort(eigenvalues)[::-1][:number_of_factors]
        factors = eigenvectors[:, order] * np.sqrt(np.clip(eigenvalues[order], 0.0, None))
        norms = np.linalg.norm(factors, axis=1, keepdims=True)
        if np.any(norms <= 0.0):
            raise NumericalFailure("팩터 축소 후 길이가 0인 성분이 있습니다.")
        return factors / norms

    def factor_loading(self, component: int) -> np.ndarray:
        return self.factor_matrix[component]

    def correlation(self, component1: int, component2: int) -> float:
        return float(self.factor_matrix[component1] @ self.factor_matrix[component2])

    def clone_with_decay(self, decay: float) -> "ExponentialDecayCorrelationModel":
        return ExponentialDecayCorrelationModel(self.tenor, self.number_of_factors, decay)


class CovarianceModelFromVolatilityAndCorrelation(ParametricCovarianceModel):
    """λ_{j,k}(t) = σ_j(t) · f_{j,k}. 보정 파라미터는 변동성 파라미터 (+ 선택적으로 상관 감쇠)."""

    def __init__(self, tenor: TenorStructure, volatility_model: VolatilityModel,
                 correlation_model: ExponentialDecayCorrelationModel,
                 calibrate_correlation: bool = False):
        super().__init__(tenor, correlation_model.number_of_factors)
        if correlation_model.tenor != tenor:
            raise ConfigurationError("상관 모형의 테너 구조가 공분산 모형과 다릅니다.")
        self.volatility_model = volatility_model
        self.correlation_model = correlation_model
        self.calibrate_correlation = calibrate_correlation

    def factor_loading(self, time: float, component: int, realization: Optional[np.ndarray] = None) -> np.ndarray:
        self._check_component(component)
        sigma = self.volatility_model.volatility(time, self.tenor.time(component))
        return sigma * self.correlation_model.factor_loading(component)

    def get_parameters(self) -> np.ndarray:
        parameters = self.volatility_model.get_parameters()
        if self.calibrate_correlation:
            parameters = np.append(parameters, self.correlation_model.decay)
        return parameters

    def clone_with_parameters(self, parameters: Sequence[float]) -> "CovarianceModelFromVolatilityAndCorrelation":
        parameters = np.asarray(parameters, dtype=float)
        n_vol = len(self.volatility_model.get_parameters())
        if len(parameters) != n_vol + (1 if self.calibrate_correlation else 0):
            raise ConfigurationError(f"파라미터 길이가 맞지 않습니다: {len(parameters)}")
        volatility_model = self.volatility_model.clone_with_parameters(parameters[:n_vol])
        correlation_model = self.correlation_model
        if self.calibrate_correlation and parameters[n_vol] != correlation_model.decay:
            correlation_model = correlation_model.clone_with_decay(parameters[n_vol])
        return CovarianceModelFromVolatilityAndCorrelation(
            self.tenor, volatility_model, correlation_model, self.calibrate_correlation
        )


def create_flat_covariance_model(tenor: TenorStructure, volatility: float,
                                 number_of_factors: int = 1, decay: float = 0.0
                                 ) -> CovarianceModelFromVolatilityAndCorrelation:
    """상수 변동성과 지수 감쇠 상관을 갖는 공분산 모형을 생성합니다."""
    return CovarianceModelFromVolatilityAndCorrelation(
        tenor,
        ConstantVolatilityModel(volatility),
        ExponentialDecayCorrelationModel(tenor, number_of_factors, decay),
    )
