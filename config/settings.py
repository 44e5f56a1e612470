# lmm_pricing/config/settings.py

import os

## 프로젝트 루트 디렉터리 계산
# 이 파일(settings.py)이 있는 config 폴더의 부모 폴더(lmm_pricing)가 기준
BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))

## 데이터가 저장될 디렉터리
DATA_DIR = os.path.join(BASE_DIR, "data")

## 파일 이름 정의
CALIBRATED_PARAMS_FILE = "calibrated_covariance_params.json"

## 로깅 설정 (스크립트에서 logging.basicConfig에 전달)
LOG_LEVEL = os.environ.get("LMM_LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

## 테너 구조 기본값 (단위: 년)
TENOR_START = 0.0
TENOR_END = 10.0
TENOR_PERIOD = 0.5

## 시뮬레이션 시간 격자 간격 (년)
SIMULATION_DT = 0.5

## 몬테카를로 시뮬레이션 경로 수와 난수 시드
NUM_PATHS = 10000
SEED = 3141

## 팩터 수
NUMBER_OF_FACTORS = 1

## 평탄 시장 기본값
# 선도금리 3%, 로그정규 변동성 20%
FLAT_FORWARD_RATE = 0.03
FLAT_VOLATILITY = 0.20

## 상관구조: rho(i,j) = exp(-decay * |T_i - T_j|)
CORRELATION_DECAY = 0.05

## 4-파라미터 지수형 변동성 σ(τ) = (a + b τ) exp(-c τ) + d 의 초기값
INITIAL_VOLATILITY_PARAMS = {
    "a": 0.20, "b": 0.0, "c": 0.25, "d": 0.10,
}

## 모형 선택 기본값
DEFAULT_MEASURE = "SPOT"                     # SPOT | TERMINAL
DEFAULT_STATE_SPACE = "LOGNORMAL"            # NORMAL | LOGNORMAL
DEFAULT_DRIFT_APPROXIMATION = "EULER"        # EULER | PREDICTOR_CORRECTOR
DEFAULT_INTERPOLATION_METHOD = "LOG_LINEAR_CORRECTED"

## 로그정규 상태공간에서 지수변환 후 적용하는 금리 상한
# 수치 안정성을 위한 의도적 클램프 (모형의 일부가 아님). float("inf")이면 비활성
LIBOR_CAP = 1e5

## 수치 허용오차
TIME_TOLERANCE = 1e-9      # 격자 시점 비교
PSD_TOLERANCE = 1e-10      # 상관행렬 고유값 음수 허용 한계

## 병렬 처리
# 경로 블록을 joblib 스레드로 나누어 생성 (-1이면 모든 코어 사용)
N_JOBS = 1
PATH_BLOCK_SIZE = 5000

## 보정 기본값
CALIBRATION_MAX_ITERATIONS = 200
CALIBRATION_ACCURACY = 1e-7
CALIBRATION_NUM_PATHS = 2000
CALIBRATION_SEED = 31415
