# -*- coding: utf-8 -*-
"""
상태공간 변환
=============

내부 확산 좌표 X와 관측 가능한 선도금리 L 사이의 변환 전략입니다.

* ``NormalStateSpace``: L = X (항등 변환)
* ``LognormalStateSpace``: L = min(exp(X), cap), X = log(L)

로그정규 상태공간의 상한(cap)은 지수변환 직후에 적용하는 수치적 클램프입니다.
모형의 일부가 아니며 극단 경로에서 작은 편향을 만드는 대신 오버플로를 막습니다.
각 전략은 드리프트 계산에 필요한 두 가지 항도 함께 제공합니다:

* ``measure_weight``: 측도 변환 가중치 δ/(1+δL)에 곱하는 계수 (정규: 1, 로그정규: L)
* ``ito_correction``: 내부 좌표 드리프트에 더하는 이토 보정 (정규: 0, 로그정규: -½ Var)
"""

import math
from abc import ABC, abstractmethod
from enum import Enum

import numpy as np

from ...config.settings import LIBOR_CAP
from ..exceptions import ConfigurationError


class StateSpace(Enum):
    NORMAL = "NORMAL"
    LOGNORMAL = "LOGNORMAL"

    @classmethod
    def parse(cls, value) -> "StateSpace":
        if isinstance(value, cls):
            return value
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            raise ConfigurationError(f"지원되지 않는 상태공간입니다: {value}") from None


class StateSpaceTransform(ABC):
    state_space: StateSpace

    @abstractmethod
    def to_observable(self, component: int, value):
        pass

    @abstractmethod
    def to_internal(self, component: int, value):
        pass

    @abstractmethod
    def measure_weight(self, libor):
        pass

    @abstractmethod
    def ito_correction(self, variance):
        pass


class NormalStateSpace(StateSpaceTransform):
    state_space = StateSpace.NORMAL

    def to_observable(self, component: int, value):
        return value

    def to_internal(self, component: int, value):
        return value

    def measure_weight(self, libor):
        return 1.0

    def ito_correction(self, variance):
        return 0.0


class LognormalStateSpace(StateSpaceTransform):
    state_space = StateSpace.LOGNORMAL

    def __init__(self, cap: float = LIBOR_CAP):
        self.cap = float(cap)

    def to_observable(self, component: int, value):
        observable = np.exp(value)
        if not math.isinf(self.cap):
            observable = np.minimum(observable, self.cap)
        return observable

    def to_internal(self, component: int, value):
        return np.log(value)

    def measure_weight(self, libor):
        return libor

    def ito_correction(self, variance):
        return -0.5 * variance


def make_state_space_transform(state_space, libor_cap: float = LIBOR_CAP) -> StateSpaceTransform:
    state_space = StateSpace.parse(state_space)
    if state_space is StateSpace.LOGNORMAL:
        return LognormalStateSpace(libor_cap)
    return NormalStateSpace()
