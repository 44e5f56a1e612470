# -*- coding: utf-8 -*-
"""
`simulation` 패키지는 LMM 경로 생성과 경로 기반 조회를 담당합니다.

* ``brownian``: 시드 고정 다요인 브라운 운동
* ``process``: 오일러 경로 생성기와 ``ForwardRateState``
* ``numeraire``: 기준자산 엔진과 compute-if-absent 캐시
* ``interpolation``: 테너 사이 선도금리 보간
* ``lmm_simulation``: 위 구성요소를 조립한 시뮬레이션 객체
"""

from .brownian import BrownianMotion
from .process import EulerSchemeProcess, ForwardRateState
from .numeraire import NumeraireCache, NumeraireEngine
from .interpolation import TenorInterpolator
from .lmm_simulation import LIBORModelMonteCarloSimulation

__all__ = [
    "BrownianMotion",
    "EulerSchemeProcess",
    "ForwardRateState",
    "NumeraireCache",
    "NumeraireEngine",
    "TenorInterpolator",
    "LIBORModelMonteCarloSimulation",
]
