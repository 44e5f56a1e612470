# -*- coding: utf-8 -*-
"""
보정 어댑터
===========

상품 가치와 목표값의 차이를 줄이는 공분산 모형을 찾아, 같은 난수를 사용하는
새 시뮬레이션으로 교체하는 경계 모듈입니다. 목적함수와 최적화 자체는
``ParametricCovarianceModel.get_clone_calibrated``가 담당합니다.

* ``CalibrationItem``: (상품, 목표값, 가중치). 상품은 ``get_value(simulation)``을 제공
* ``CalibrationAdapter.calibrate``: 보정된 공분산 모형을 끼운 시뮬레이션 반환
* ``save_calibrated_parameters`` / ``load_calibrated_parameters``: JSON 입출력
"""

import json
import logging
import os
from dataclasses import dataclass
from typing import Dict, Iterable, List

import numpy as np

from ...config.settings import (
    CALIBRATED_PARAMS_FILE,
    CALIBRATION_ACCURACY,
    CALIBRATION_MAX_ITERATIONS,
    DATA_DIR,
    N_JOBS,
)
from ..exceptions import ConfigurationError
from ..models.covariance import ParametricCovarianceModel
from ..simulation.lmm_simulation import LIBORModelMonteCarloSimulation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CalibrationItem:
    product: object
    target_value: float
    weight: float = 1.0


class CalibrationAdapter:
    """파라미터형 공분산 모형을 보정하여 시뮬레이션에 반영합니다."""

    def __init__(self, max_iterations: int = CALIBRATION_MAX_ITERATIONS,
                 accuracy: float = CALIBRATION_ACCURACY, n_jobs: int = N_JOBS):
        self.max_iterations = max_iterations
        self.accuracy = accuracy
        self.n_jobs = n_jobs

    def calibrate(self, simulation: LIBORModelMonteCarloSimulation,
                  items: Iterable[CalibrationItem]) -> LIBORModelMonteCarloSimulation:
        covariance_model = simulation.model.covariance_model
        if not isinstance(covariance_model, ParametricCovarianceModel):
            raise ConfigurationError(
                f"{type(covariance_model).__name__}은(는) 파라미터형 공분산 모형이 아니므로 보정할 수 없습니다."
            )
        calibrated = covariance_model.get_clone_calibrated(
            simulation,
            list(items),
            max_iterations=self.max_iterations,
            accuracy=self.accuracy,
            n_jobs=self.n_jobs,
        )
        logger.info("보정된 파라미터: %s", np.array2string(calibrated.get_parameters(), precision=6))
        return simulation.clone_with_modified_covariance(calibrated)


# --- 파라미터 파일 입출력 ---

def _get_params_filepath(filename: str = CALIBRATED_PARAMS_FILE) -> str:
    return os.path.join(DATA_DIR, filename)


def save_calibrated_parameters(covariance_model: ParametricCovarianceModel,
                               filename: str = CALIBRATED_PARAMS_FILE) -> str:
    """보정된 공분산 모형의 파라미터 벡터를 JSON 파일에 저장하고 경로를 반환합니다."""
    os.makedirs(DATA_DIR, exist_ok=True)
    path = _get_params_filepath(filename)
    data: Dict[str, object] = {
        "model": type(covariance_model).__name__,
        "number_of_factors": covariance_model.number_of_factors,
        "parameters": [float(p) for p in covariance_model.get_parameters()],
    }
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
    return path


def load_calibrated_parameters(filename: str = CALIBRATED_PARAMS_FILE) -> List[float]:
    """저장된 파라미터 벡터를 불러옵니다. ``clone_with_parameters``에 그대로 넘길 수 있습니다."""
    path = _get_params_filepath(filename)
    if not os.path.exists(path):
        raise FileNotFoundError(f"보정 파일을 찾을 수 없습니다: {path}. 먼저 03_calibrate_lmm.py를 실행하세요.")

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return [float(p) for p in data["parameters"]]
