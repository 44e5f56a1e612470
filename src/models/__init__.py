# -*- coding: utf-8 -*-
"""
`models` 패키지는 LMM의 정의와 드리프트 계산 로직을 포함합니다.

* ``lmm``: 불변 모형 객체 ``LIBORMarketModel``
* ``covariance``: 변동성/상관 모형과 파라미터형 공분산 모형
* ``measure``: SPOT / TERMINAL 측도 전략
* ``state_space``: NORMAL / LOGNORMAL 상태공간 변환
* ``drift``: 무차익 드리프트 엔진
"""

from .covariance import (
    CovarianceModel,
    ParametricCovarianceModel,
    VolatilityModel,
    ConstantVolatilityModel,
    FourParameterExponentialVolatilityModel,
    ExponentialDecayCorrelationModel,
    CovarianceModelFromVolatilityAndCorrelation,
    create_flat_covariance_model,
)
from .measure import (
    Measure,
    MeasureStrategy,
    SpotMeasure,
    TerminalMeasure,
    make_measure_strategy,
)
from .state_space import (
    StateSpace,
    StateSpaceTransform,
    NormalStateSpace,
    LognormalStateSpace,
    make_state_space_transform,
)
from .drift import DriftEngine
from .lmm import (
    LIBORMarketModel,
    DriftApproximation,
    InterpolationMethod,
)

__all__ = [
    "CovarianceModel",
    "ParametricCovarianceModel",
    "VolatilityModel",
    "ConstantVolatilityModel",
    "FourParameterExponentialVolatilityModel",
    "ExponentialDecayCorrelationModel",
    "CovarianceModelFromVolatilityAndCorrelation",
    "create_flat_covariance_model",
    "Measure",
    "MeasureStrategy",
    "SpotMeasure",
    "TerminalMeasure",
    "make_measure_strategy",
    "StateSpace",
    "StateSpaceTransform",
    "NormalStateSpace",
    "LognormalStateSpace",
    "make_state_space_transform",
    "DriftEngine",
    "LIBORMarketModel",
    "DriftApproximation",
    "InterpolationMethod",
]
