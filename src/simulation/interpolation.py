# -*- coding: utf-8 -*-
"""
테너 보간기
===========

테너점에 맞지 않는 임의 기간 [S, E]의 선도금리 L(t; S, E)를 제공합니다.

* 정확히 한 테너 구간이면 모형의 기본 변수 L_k를 그대로 반환합니다 (보간 경로 없음).
* 여러 테너 구간에 걸치면 각 구간의 복리 계수를 곱합니다.
* 끝점 E가 테너점이 아니면 (E_prev ≤ E < E_next)::

      1 + L(S,E)(E-S) = (1 + L(S,E_next)(E_next-S)) / (1 + L(E_prev,E_next)δ)^((E_next-E)/δ)

* 시작점 S가 테너점이 아니면 (S_prev ≤ S < S_next)::

      1 + L(S,E)(E-S) = (1 + L(S_prev,E)(E-S_prev)) / (1 + L(S_prev,S_next)δ)^((S-S_prev)/δ)

두 식 모두 기준자산의 로그-선형 보간과 같은 방식의 멱(power) 보간입니다.
``LOG_LINEAR_CORRECTED``이면 선도곡선에서 계산한 결정적 비율을 곱해,
변동성이 0일 때 보간 결과가 곡선이 주는 금리와 정확히 같도록 보정합니다.
양 끝이 모두 테너점이 아니면 각각 독립적으로 재귀합니다.
"""

import numpy as np

from ...config.settings import TIME_TOLERANCE
from ..exceptions import NumericalFailure, OutOfRangeError
from ..models.lmm import InterpolationMethod, LIBORMarketModel


class TenorInterpolator:
    """기준자산 보간과 일관된 테너 사이 선도금리 보간."""

    def __init__(self, model: LIBORMarketModel):
        self.model = model

    @property
    def is_corrected(self) -> bool:
        return self.model.interpolation_method is InterpolationMethod.LOG_LINEAR_CORRECTED

    def forward_rate(self, process, time: float, period_start: float, period_end: float) -> np.ndarray:
        tenor = self.model.tenor
        if period_end <= period_start + TIME_TOLERANCE:
            raise OutOfRangeError(f"기간 끝({period_end})이 시작({period_start})보다 뒤여야 합니다.")
        if not (tenor.contains(period_start) and tenor.contains(period_end)):
            raise OutOfRangeError(
                f"기간 [{period_start}, {period_end}]이(가) 테너 구간 [{tenor.first_time}, {tenor.last_time}] 밖입니다."
            )

        libor = self._forward_rate(process, time, period_start, period_end)
        if not np.all(np.isfinite(libor)):
            raise NumericalFailure("선도금리 보간 결과가 유한하지 않습니다", time=time)
        return libor

    def _forward_rate(self, process, time, period_start, period_end):
        tenor = self.model.tenor
        start_index = tenor.index_of(period_start)
        end_index = tenor.index_of(period_end)

        if end_index is None:
            previous_end, next_end = tenor.bracket(period_end)
            previous_end_time, next_end_time = tenor.time(previous_end), tenor.time(next_end)
            short_length = next_end_time - previous_end_time
            libor_long = self._forward_rate(process, time, period_start, next_end_time)
            libor_short = self._forward_rate(process, time, previous_end_time, next_end_time)

            factor = (1.0 + libor_long * (next_end_time - period_start)) / np.exp(
                np.log1p(libor_short * short_length) * (next_end_time - period_end) / short_length
            )
            if self.is_corrected:
                factor = factor * self._analytic_adjustment(
                    previous_end_time, period_end, previous_end_time, next_end_time,
                    (period_end - previous_end_time) / short_length,
                )
            return (factor - 1.0) / (period_end - period_start)

        if start_index is None:
            previous_start, next_start = tenor.bracket(period_start)
            previous_start_time, next_start_time = tenor.time(previous_start), tenor.time(next_start)
            short_length = next_start_time - previous_start_time
            libor_long = self._forward_rate(process, time, previous_start_time, period_end)
            libor_short = self._forward_rate(process, time, previous_start_time, next_start_time)

            factor = (1.0 + libor_long * (period_end - previous_start_time)) / np.exp(
                np.log1p(libor_short * short_length) * (period_start - previous_start_time) / short_length
            )
            if self.is_corrected:
                factor = factor * self._analytic_adjustment(
                    period_start, next_start_time, previous_start_time, next_start_time,
                    (next_start_time - period_start) / short_length,
                )
            return (factor - 1.0) / (period_end - period_start)

        # 고정 이후에는 성분이 동결된 격자점 (period_start 이상의 첫 격자점) 에서 읽음
        if time >= period_start - TIME_TOLERANCE:
            def libor(k):
                return process.fixed_libor_at(period_start, k)
        else:
            def libor(k):
                return process.libor_at(time, k)

        if end_index == start_index + 1:
            return libor(start_index)

        # 테너점에 맞지만 여러 구간에 걸친 기간: 복리 계수의 곱
        accrual = 1.0
        for k in range(start_index, end_index):
            accrual = accrual * (1.0 + tenor.period_length(k) * libor(k))
        return (accrual - 1.0) / (period_end - period_start)

    def _analytic_adjustment(self, exact_start, exact_end, short_start, short_end, exponent) -> float:
        """곡선 기준 정확한 복리 계수 / 멱 보간한 복리 계수."""
        forward_curve = self.model.forward_curve
        analytic_libor = forward_curve.forward(exact_start, exact_end - exact_start)
        analytic_libor_short = forward_curve.forward(short_start, short_end - short_start)
        interpolated = np.exp(np.log1p(analytic_libor_short * (short_end - short_start)) * exponent)
        return (1.0 + analytic_libor * (exact_end - exact_start)) / interpolated
