# -*- coding: utf-8 -*-
"""
`calibration` 패키지는 공분산 모형 보정 결과를 시뮬레이션에 반영하는 경계입니다.
"""

from .adapter import (
    CalibrationAdapter,
    CalibrationItem,
    save_calibrated_parameters,
    load_calibrated_parameters,
)

__all__ = [
    "CalibrationAdapter",
    "CalibrationItem",
    "save_calibrated_parameters",
    "load_calibrated_parameters",
]
