# -*- coding: utf-8 -*-
"""
LIBOR 마켓 모형 (LMM)
=====================

테너 구조 T0 < ... < Tn 위의 단순복리 선도금리 L_k (k = 0..n-1)를 상태변수로 하는
다요인 LMM의 불변 모형 정의입니다::

    dX_j = μ_j(t) dt + Σ_k λ_{j,k}(t) dW_k,    L_j = g(X_j)

g는 상태공간 변환(정규: 항등, 로그정규: exp)이고, μ는 선택한 측도에서의 무차익 드리프트입니다.

모형 객체는 생성 후 변경되지 않습니다. 측도/상태공간 전략은 생성 시 한 번만 선택되며,
공분산 모형이나 곡선을 바꾸려면 ``clone_with_modified_*`` 메서드로 새 객체를 만듭니다.
"""

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import numpy as np

from ...config.settings import (
    DEFAULT_DRIFT_APPROXIMATION,
    DEFAULT_INTERPOLATION_METHOD,
    DEFAULT_MEASURE,
    DEFAULT_STATE_SPACE,
    LIBOR_CAP,
)
from ..exceptions import ConfigurationError
from ..market.curves import DiscountCurve, ForwardCurve
from ..market.time_grid import TenorStructure
from .covariance import CovarianceModel
from .measure import Measure, MeasureStrategy, make_measure_strategy
from .state_space import StateSpace, StateSpaceTransform, make_state_space_transform


class DriftApproximation(Enum):
    EULER = "EULER"
    PREDICTOR_CORRECTOR = "PREDICTOR_CORRECTOR"


class InterpolationMethod(Enum):
    LOG_LINEAR_UNCORRECTED = "LOG_LINEAR_UNCORRECTED"
    LOG_LINEAR_CORRECTED = "LOG_LINEAR_CORRECTED"


def _parse_enum(enum_cls, value):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls[str(value).strip().upper()]
    except KeyError:
        raise ConfigurationError(f"지원되지 않는 {enum_cls.__name__} 값입니다: {value}") from None


UNCHANGED = object()


@dataclass(frozen=True)
class LIBORMarketModel:
    tenor: TenorStructure
    forward_curve: ForwardCurve
    covariance_model: CovarianceModel
    measure: Measure = DEFAULT_MEASURE
    state_space: StateSpace = DEFAULT_STATE_SPACE
    discount_curve: Optional[DiscountCurve] = None
    libor_cap: float = LIBOR_CAP
    drift_approximation: DriftApproximation = DEFAULT_DRIFT_APPROXIMATION
    interpolation_method: InterpolationMethod = DEFAULT_INTERPOLATION_METHOD

    measure_strategy: MeasureStrategy = field(init=False, repr=False, compare=False)
    state_space_transform: StateSpaceTransform = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "measure", Measure.parse(self.measure))
        object.__setattr__(self, "state_space", StateSpace.parse(self.state_space))
        object.__setattr__(self, "drift_approximation", _parse_enum(DriftApproximation, self.drift_approximation))
        object.__setattr__(self, "interpolation_method", _parse_enum(InterpolationMethod, self.interpolation_method))

        if not isinstance(self.tenor, TenorStructure):
            raise ConfigurationError("tenor는 TenorStructure여야 합니다.")
        if self.covariance_model.tenor != self.tenor:
            raise ConfigurationError("공분산 모형의 테너 구조가 모형의 테너 구조와 다릅니다.")
        if self.libor_cap <= 0.0:
            raise ConfigurationError(f"금리 상한은 양수여야 합니다: {self.libor_cap}")

        # 측도/상태공간 전략은 생성 시 한 번만 선택
        object.__setattr__(self, "measure_strategy", make_measure_strategy(self.measure))
        object.__setattr__(self, "state_space_transform",
                           make_state_space_transform(self.state_space, self.libor_cap))

    @property
    def number_of_components(self) -> int:
        return self.tenor.number_of_components

    @property
    def number_of_factors(self) -> int:
        return self.covariance_model.number_of_factors

    def initial_forwards(self) -> np.ndarray:
        """t=0의 선도금리 L_k(0) = forward(T_k, δ_k)."""
        return np.array([
            self.forward_curve.forward(self.tenor.time(k), self.tenor.period_length(k))
            for k in range(self.number_of_components)
        ])

    def initial_state(self) -> np.ndarray:
        """내부 좌표의 초기 상태 X_k(0)."""
        forwards = self.initial_forwards()
        if self.state_space is StateSpace.LOGNORMAL and np.any(forwards <= 0.0):
            bad = int(np.argmax(forwards <= 0.0))
            raise ConfigurationError(
                f"로그정규 상태공간에는 양의 초기 선도금리가 필요합니다 (성분 {bad}: {forwards[bad]})"
            )
        return np.array([self.state_space_transform.to_internal(k, forwards[k])
                         for k in range(self.number_of_components)])

    def to_observable(self, component: int, value):
        return self.state_space_transform.to_observable(component, value)

    def to_internal(self, component: int, value):
        return self.state_space_transform.to_internal(component, value)

    def factor_loading(self, time: float, component: int, realization=None) -> np.ndarray:
        return self.covariance_model.factor_loading(time, component, realization)

    # --- 불변 갱신 ---

    def clone_with_modified_covariance(self, covariance_model: CovarianceModel) -> "LIBORMarketModel":
        return dataclasses.replace(self, covariance_model=covariance_model)

    def clone_with_modified_curve(self, forward_curve=UNCHANGED, discount_curve=UNCHANGED) -> "LIBORMarketModel":
        """선도곡선 및/또는 할인곡선을 교체한 새 모형. discount_curve=None이면 할인 조정을 끕니다."""
        changes = {}
        if forward_curve is not UNCHANGED:
            changes["forward_curve"] = forward_curve
        if discount_curve is not UNCHANGED:
            changes["discount_curve"] = discount_curve
        return dataclasses.replace(self, **changes)
