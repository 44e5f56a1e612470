# -*- coding: utf-8 -*-
"""
측도 전략 (SPOT / TERMINAL)
===========================

측도는 드리프트의 누적 방향과 기준자산(numeraire)의 곱 방향을 함께 결정합니다.
두 전략은 서로의 부호 반전이 아닙니다. 두 기준자산이 달력상 반대 방향을 보기 때문입니다.

SPOT 측도 (이산 롤링 머니마켓 계정)::

    μ_j(t) =  Σ_{m(t) ≤ l ≤ j}  w_l (λ_l · λ_j)
    N(T_i) =  Π_{k < i} (1 + δ_k L_k(T_k))

TERMINAL 측도 (만기 T_n 무이표채)::

    μ_j(t) = -Σ_{j < l ≤ n-1}   w_l (λ_l · λ_j)
    N(T_i) =  Π_{k ≥ i} 1 / (1 + δ_k L_k(T_i))

여기서 w_l = δ_l / (1 + δ_l L_l) 이고, 로그정규 상태공간에서는 L_l을 한 번 더 곱합니다.
m(t)는 아직 고정되지 않은 첫 성분입니다. 두 합 모두 부분합(prefix sum) 점화식이므로
성분 순서를 지켜야 합니다.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, Sequence

import numpy as np

from ..exceptions import ConfigurationError
from ..market.time_grid import TenorStructure


class Measure(Enum):
    SPOT = "SPOT"
    TERMINAL = "TERMINAL"

    @classmethod
    def parse(cls, value) -> "Measure":
        if isinstance(value, cls):
            return value
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            raise ConfigurationError(f"지원되지 않는 측도입니다: {value}") from None


class MeasureStrategy(ABC):
    measure: Measure

    @abstractmethod
    def accumulate_drift(self, first_component: int, weights: Sequence[np.ndarray],
                         loadings: Sequence[np.ndarray], drift: np.ndarray) -> None:
        """살아있는 성분 [first_component, n)의 측도 드리프트를 drift에 기록합니다.

        weights[j]: (paths,) 측도 변환 가중치, loadings[j]: (factors, paths|1) 팩터 로딩.
        """
        pass

    @abstractmethod
    def numeraire_at_tenor(self, tenor: TenorStructure, tenor_index: int,
                           libor_at: Callable[[float, int], np.ndarray]) -> np.ndarray:
        """테너점 T_i의 (조정 전) 기준자산. libor_at(time, k)는 시점 time의 L_k 실현값."""
        pass


class SpotMeasure(MeasureStrategy):
    measure = Measure.SPOT

    def accumulate_drift(self, first_component, weights, loadings, drift):
        running_sum = 0.0
        for component in range(first_component, len(loadings)):
            # 자신의 기여를 먼저 더한 뒤 사용 (l ≤ j 포함)
            running_sum = running_sum + weights[component] * loadings[component]
            drift[component] = np.sum(running_sum * loadings[component], axis=0)

    def numeraire_at_tenor(self, tenor, tenor_index, libor_at):
        numeraire = 1.0
        for k in range(tenor_index):
            # 누적(accrual): 각 기간의 고정 금리로 이자를 붙임
            numeraire = numeraire * (1.0 + tenor.period_length(k) * libor_at(tenor.time(k), k))
        return np.asarray(numeraire, dtype=float)


class TerminalMeasure(MeasureStrategy):
    measure = Measure.TERMINAL

    def accumulate_drift(self, first_component, weights, loadings, drift):
        running_sum = 0.0
        for component in range(len(loadings) - 1, first_component - 1, -1):
            # 먼저 사용한 뒤 자신의 기여를 제거 (l > j 만 포함)
            drift[component] = np.sum(running_sum * loadings[component], axis=0)
            running_sum = running_sum - weights[component] * loadings[component]

    def numeraire_at_tenor(self, tenor, tenor_index, libor_at):
        time = tenor.time(tenor_index)
        numeraire = 1.0
        for k in range(tenor_index, tenor.number_of_components):
            # 할인(discount): 시점 T_i의 선도금리로 T_n까지 할인
            numeraire = numeraire / (1.0 + tenor.period_length(k) * libor_at(time, k))
        return np.asarray(numeraire, dtype=float)


def make_measure_strategy(measure) -> MeasureStrategy:
    measure = Measure.parse(measure)
    if measure is Measure.TERMINAL:
        return TerminalMeasure()
    return SpotMeasure()
