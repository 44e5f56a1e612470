# -*- coding: utf-8 -*-
"""
기준자산(numeraire) 엔진
========================

측도에 맞는 기준자산 N(t)를 계산하고 캐시합니다.

* 테너점 T_i: 측도 전략의 곱(SPOT은 누적, TERMINAL은 할인)으로 처음부터 계산하고
  테너 인덱스로 캐시합니다.
* 테너점 사이: 양쪽 테너점 기준자산을 로그-선형 보간합니다 (양수성과 복리 성장 보존).
* 할인곡선이 설정되어 있으면 결정적 조정 a(t) = E[1/N(t)] / P(0,t)를 곱해
  E[1/N'(t)] = P(0,t)가 정확히 성립하도록 합니다. a(t)는 시점별로 캐시합니다.
* 첫 테너점 이전이나 마지막 테너점 이후의 요청은 OutOfRangeError입니다 (외삽 없음).

캐시는 엔진 인스턴스가 소유하며 경로 생성기(owner)에 묶입니다.
다른 경로 생성기가 들어오면 캐시 전체를 비운 뒤 진행합니다.
"""

import logging
import threading
from concurrent.futures import Future
from types import MappingProxyType
from typing import Callable, Dict, Hashable, Mapping

import numpy as np

from ..exceptions import NumericalFailure, OutOfRangeError
from ..models.lmm import LIBORMarketModel

logger = logging.getLogger(__name__)


class NumeraireCache:
    """키별 최대 1회 계산을 보장하는 compute-if-absent 캐시.

    같은 키를 동시에 요청하면 한 스레드만 계산하고 나머지는 그 결과(Future)를 기다립니다.
    계산이 실패하면 기다리던 모든 호출에 같은 예외가 전파되고 키는 해제됩니다.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: Dict[Hashable, Future] = {}
        self._owner = None

    def _bind(self, owner) -> None:
        # self._lock 안에서 호출
        if owner is not self._owner:
            if self._entries:
                logger.debug("기준자산 캐시 무효화: 항목 %d개 삭제", len(self._entries))
            self._entries.clear()
            self._owner = owner

    def get_or_compute(self, owner, key: Hashable, compute: Callable[[], np.ndarray]):
        with self._lock:
            self._bind(owner)
            future = self._entries.get(key)
            is_computing_thread = future is None
            if is_computing_thread:
                future = Future()
                self._entries[key] = future

        if not is_computing_thread:
            return future.result()

        try:
            value = compute()
        except BaseException as exc:
            with self._lock:
                if self._entries.get(key) is future:
                    del self._entries[key]
            future.set_exception(exc)
            raise
        future.set_result(value)
        return value

    def keys(self) -> frozenset:
        with self._lock:
            return frozenset(self._entries)

    def completed_items(self) -> Dict[Hashable, object]:
        with self._lock:
            entries = list(self._entries.items())
        return {key: future.result() for key, future in entries
                if future.done() and future.exception() is None}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def _read_only(values: np.ndarray) -> np.ndarray:
    values.flags.writeable = False
    return values


class NumeraireEngine:
    """경로 생성기(process)의 실현값으로 기준자산을 계산합니다."""

    def __init__(self, model: LIBORMarketModel):
        self.model = model
        self.cache = NumeraireCache()

    def numeraire(self, process, time: float) -> np.ndarray:
        """시점 time의 기준자산 N(time) (paths,)."""
        tenor = self.model.tenor
        if not tenor.contains(time):
            raise OutOfRangeError(
                f"기준자산 요청 시점 {time}은(는) 테너 구간 [{tenor.first_time}, {tenor.last_time}] 밖입니다."
            )
        lower, upper = tenor.bracket(time)
        if lower == upper:
            numeraire = self._numeraire_at_tenor(process, lower)
        else:
            weight = (time - tenor.time(lower)) / (tenor.time(upper) - tenor.time(lower))
            log_lower = np.log(self._numeraire_at_tenor(process, lower))
            log_upper = np.log(self._numeraire_at_tenor(process, upper))
            numeraire = np.exp((1.0 - weight) * log_lower + weight * log_upper)
            if not np.all(np.isfinite(numeraire)):
                raise NumericalFailure("기준자산 보간 결과가 유한하지 않습니다", time=time)

        if self.model.discount_curve is not None:
            adjustment = self._adjustment(process, time, numeraire)
            numeraire = numeraire * adjustment
        return _read_only(np.array(numeraire, dtype=float))

    def _numeraire_at_tenor(self, process, tenor_index: int) -> np.ndarray:
        def compute() -> np.ndarray:
            value = self.model.measure_strategy.numeraire_at_tenor(
                self.model.tenor, tenor_index, process.fixed_libor_at
            )
            value = np.broadcast_to(value, (process.number_of_paths,)).astype(float)
            if not np.all(np.isfinite(value)) or np.any(value <= 0.0):
                raise NumericalFailure("기준자산이 양의 유한값이 아닙니다", time=self.model.tenor.time(tenor_index))
            return _read_only(value)

        return self.cache.get_or_compute(process, ("tenor", tenor_index), compute)

    def _adjustment(self, process, time: float, numeraire: np.ndarray) -> float:
        def compute() -> float:
            discount_factor = self.model.discount_curve.discount_factor(time)
            return float(np.mean(1.0 / numeraire) / discount_factor)

        return self.cache.get_or_compute(process, ("adjustment", round(float(time), 12)), compute)

    def numeraire_adjustments(self) -> Mapping[float, float]:
        """지금까지 계산된 결정적 조정값 {time: a(time)} (읽기 전용)."""
        adjustments = {key[1]: value for key, value in self.cache.completed_items().items()
                       if key[0] == "adjustment"}
        return MappingProxyType(dict(sorted(adjustments.items())))
