"""
`src` 서브패키지는 LMM 시뮬레이션 프로젝트의 핵심 로직을 포함합니다.
시간 격자와 곡선, 모형 정의, 경로 생성과 기준자산 계산, 보정 경계 등
여러 모듈을 이곳에서 찾을 수 있습니다.
"""

__all__ = [
    "exceptions",
    "market",
    "models",
    "simulation",
    "calibration",
]
