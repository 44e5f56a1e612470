"""
lmm_pricing 패키지는 다요인 LIBOR 마켓 모형(LMM)의 몬테카를로 시뮬레이션 코어를 제공합니다.

이 패키지는 테너 구조와 결정적 곡선, 공분산(팩터 로딩) 모형,
측도별 드리프트와 기준자산(numeraire) 계산, 테너 사이 선도금리 보간,
공분산 모형 보정 경계 모듈을 포함합니다.

설정값은 config/settings.py, 실행 예제는 scripts를 참고하세요.
"""

__all__ = [
    "config",
    "market",
    "models",
    "simulation",
    "calibration",
]
