# -*- coding: utf-8 -*-
"""
LMM 코어 예외 정의
==================

모든 예외는 호출한 지점에서 동기적으로 전파되며 내부 재시도는 없습니다.

* ``ConfigurationError``: 지원하지 않는 측도/상태공간, 잘못된 격자, 보정 불가 모형 등
* ``OutOfRangeError``: 첫 테너 시점 이전 또는 격자 밖의 시점/인덱스 요청
* ``NumericalFailure``: 비양정치 상관행렬, 드리프트/보간 중 NaN·Inf 발생
"""

from typing import Optional


class LMMError(Exception):
    """lmm_pricing 예외의 공통 기반 클래스."""


class ConfigurationError(LMMError, ValueError):
    """모형 구성 또는 보정 요청이 잘못되었을 때 발생합니다."""


class OutOfRangeError(LMMError, IndexError):
    """시점 또는 인덱스가 허용 범위를 벗어났을 때 발생합니다."""


class NumericalFailure(LMMError, ArithmeticError):
    """수치 계산이 유한하지 않은 값을 만들었을 때 발생합니다.

    문제가 된 시점(time)과 성분(component)을 속성으로 함께 전달합니다.
    """

    def __init__(self, message: str, time: Optional[float] = None, component: Optional[int] = None):
        details = []
        if time is not None:
            details.append(f"time={time}")
        if component is not None:
            details.append(f"component={component}")
        if details:
            message = f"{message} ({', '.join(details)})"
        super().__init__(message)
        self.time = time
        self.component = component
