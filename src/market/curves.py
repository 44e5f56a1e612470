# src/market/curves.py

import numpy as np
from math import log, exp
from typing import Dict, Iterable
from scipy.interpolate import interp1d

from ..exceptions import ConfigurationError


class DiscountCurve:
    """
    할인계수 곡선 P(0,T). 주어진 점들 사이를 ln P에 대해 선형 보간합니다.
    (0, 1.0) 점은 항상 포함됩니다.
    """
    def __init__(self, maturities: Iterable[float], discount_factors: Iterable[float], name: str = "discount"):
        points = sorted({0.0: 1.0, **{float(t): float(p) for t, p in zip(maturities, discount_factors)}}.items())
        times = np.array([p[0] for p in points])
        dfs = np.array([p[1] for p in points])
        if np.any(dfs <= 0.0):
            raise ConfigurationError(f"할인계수는 양수여야 합니다: {dfs}")
        self.name = name
        self._times = times
        self._log_dfs = np.log(dfs)
        self._interpolator = interp1d(times, self._log_dfs, kind='linear', fill_value="extrapolate")

    @classmethod
    def from_zero_rates(cls, zero_rates: Dict[float, float], name: str = "discount") -> "DiscountCurve":
        """연속복리 제로 레이트 {T: r}로부터 곡선을 생성합니다."""
        maturities = sorted(zero_rates)
        return cls(maturities, [exp(-zero_rates[t] * t) for t in maturities], name=name)

    def discount_factor(self, time: float) -> float:
        if time <= 0.0:
            return 1.0
        return float(np.exp(self._interpolator(time)))

    def __call__(self, time: float) -> float:
        return self.discount_factor(time)


class ForwardCurve:
    """
    단순복리 선도금리 곡선. 기본 구현은 할인곡선에서 유도합니다:
    L(T, δ) = (P(T)/P(T+δ) - 1) / δ
    """
    def __init__(self, discount_curve: DiscountCurve, name: str = "forward"):
        self.name = name
        self.discount_curve = discount_curve

    def forward(self, fixing_time: float, period_length: float) -> float:
        if period_length <= 0.0:
            raise ConfigurationError(f"기간 길이는 양수여야 합니다: {period_length}")
        p_start = self.discount_curve.discount_factor(fixing_time)
        p_end = self.discount_curve.discount_factor(fixing_time + period_length)
        return (p_start / p_end - 1.0) / period_length


def create_flat_curves(forward_rate: float, period: float, horizon: float = 50.0):
    """
    기간 period의 단순복리 선도금리가 forward_rate로 일정한 (할인곡선, 선도곡선) 쌍을 생성합니다.
    """
    # 단순복리 선도금리 L에 대응하는 연속복리 금리
    continuous_rate = log(1.0 + forward_rate * period) / period
    maturities = np.arange(period, horizon + period / 2, period)
    discount_curve = DiscountCurve(maturities, np.exp(-continuous_rate * maturities))
    return discount_curve, ForwardCurve(discount_curve)
