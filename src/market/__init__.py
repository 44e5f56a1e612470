# -*- coding: utf-8 -*-
"""
`market` 모듈은 시뮬레이션이 참조하는 결정적 시장 입력을 담당합니다.
주요 기능은 테너 구조와 시뮬레이션 시간 격자, 할인곡선 P(0,T)와
선도곡선 L(0; T, T+δ) 생성 등을 포함합니다.
"""

from .time_grid import (
    TimeGrid,
    TenorStructure,
    SimulationTimeGrid,
)
from .curves import (
    DiscountCurve,
    ForwardCurve,
    create_flat_curves,
)

__all__ = [
    "TimeGrid",
    "TenorStructure",
    "SimulationTimeGrid",
    "DiscountCurve",
    "ForwardCurve",
    "create_flat_curves",
]
