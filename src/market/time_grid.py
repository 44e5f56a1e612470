# -*- coding: utf-8 -*-
"""
시간 격자 모듈
==============

테너 구조(선도금리 기간 경계)와 시뮬레이션 시간 격자를 정의합니다.
두 격자 모두 생성 후 변경되지 않으며, 내부 배열은 읽기 전용입니다.

* ``TimeGrid``: 엄격히 증가하는 시점 배열과 허용오차 기반 인덱스 조회
* ``TenorStructure``: T0 < T1 < ... < Tn, 성분 k는 [T_k, T_{k+1}] 기간의 선도금리
* ``SimulationTimeGrid``: 테너보다 같거나 촘촘한 시뮬레이션 격자
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

import numpy as np

from ...config.settings import TIME_TOLERANCE
from ..exceptions import ConfigurationError, OutOfRangeError


@dataclass(frozen=True)
class TimeGrid:
    """엄격히 증가하는 시점들의 불변 격자."""

    times: np.ndarray = field(repr=False)

    def __init__(self, times: Iterable[float]):
        values = np.array(list(times), dtype=float)
        if values.ndim != 1 or len(values) < 2:
            raise ConfigurationError("시간 격자는 최소 두 개의 시점이 필요합니다.")
        if not np.all(np.isfinite(values)):
            raise ConfigurationError("시간 격자에 유한하지 않은 값이 있습니다.")
        if np.any(np.diff(values) <= 0.0):
            raise ConfigurationError(f"시간 격자는 엄격히 증가해야 합니다: {values}")
        values.flags.writeable = False
        object.__setattr__(self, "times", values)

    def __len__(self) -> int:
        return len(self.times)

    def __iter__(self):
        return iter(float(t) for t in self.times)

    def __eq__(self, other) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return len(self.times) == len(other.times) and bool(np.all(self.times == other.times))

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.times.tobytes()))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.times[0]:g}..{self.times[-1]:g}, n={len(self.times)})"

    @property
    def number_of_times(self) -> int:
        return len(self.times)

    @property
    def number_of_time_steps(self) -> int:
        return len(self.times) - 1

    @property
    def first_time(self) -> float:
        return float(self.times[0])

    @property
    def last_time(self) -> float:
        return float(self.times[-1])

    def time(self, index: int) -> float:
        if index < 0 or index >= len(self.times):
            raise OutOfRangeError(f"격자 인덱스가 범위를 벗어났습니다: {index} (0..{len(self.times) - 1})")
        return float(self.times[index])

    def time_step(self, index: int) -> float:
        if index < 0 or index >= len(self.times) - 1:
            raise OutOfRangeError(f"격자 구간 인덱스가 범위를 벗어났습니다: {index}")
        return float(self.times[index + 1] - self.times[index])

    def index_of(self, time: float) -> Optional[int]:
        """time이 격자점이면 그 인덱스, 아니면 None."""
        position = int(np.searchsorted(self.times, time - TIME_TOLERANCE, side="left"))
        if position < len(self.times) and abs(self.times[position] - time) <= TIME_TOLERANCE:
            return position
        return None

    def index_at_or_before(self, time: float) -> int:
        """time 이하인 마지막 격자점의 인덱스. time이 첫 점보다 앞서면 OutOfRangeError."""
        index = int(np.searchsorted(self.times, time + TIME_TOLERANCE, side="right")) - 1
        if index < 0:
            raise OutOfRangeError(f"시점 {time}은(는) 격자 시작점 {self.first_time} 이전입니다.")
        return index

    def index_at_or_after(self, time: float) -> int:
        """time 이상인 첫 격자점의 인덱스. time이 마지막 점을 넘으면 OutOfRangeError."""
        index = int(np.searchsorted(self.times, time - TIME_TOLERANCE, side="left"))
        if index >= len(self.times):
            raise OutOfRangeError(f"시점 {time}은(는) 격자 끝점 {self.last_time} 이후입니다.")
        return index

    def contains(self, time: float) -> bool:
        return self.first_time - TIME_TOLERANCE <= time <= self.last_time + TIME_TOLERANCE


class TenorStructure(TimeGrid):
    """선도금리 기간 경계 T0 < ... < Tn.

    성분 수(선도금리 수)는 n, 즉 ``number_of_time_steps``입니다.
    """

    @classmethod
    def uniform(cls, start: float, end: float, period: float) -> "TenorStructure":
        n = int(round((end - start) / period))
        if n < 1 or abs(start + n * period - end) > 1e-8:
            raise ConfigurationError(f"[{start}, {end}] 구간을 기간 {period}로 균등 분할할 수 없습니다.")
        return cls(np.round(start + period * np.arange(n + 1), 12))

    @property
    def number_of_components(self) -> int:
        return self.number_of_time_steps

    def period_length(self, component: int) -> float:
        return self.time_step(component)

    def bracket(self, time: float):
        """time을 감싸는 테너 인덱스 (lower, upper)를 반환합니다.

        time이 테너점이면 lower == upper 입니다.
        """
        if not self.contains(time):
            raise OutOfRangeError(f"시점 {time}은(는) 테너 구간 [{self.first_time}, {self.last_time}] 밖입니다.")
        exact = self.index_of(time)
        if exact is not None:
            return exact, exact
        lower = self.index_at_or_before(time)
        return lower, lower + 1

    def first_live_component(self, time: float) -> int:
        """아직 고정되지 않은(T_j > time) 첫 성분 인덱스."""
        index = int(np.searchsorted(self.times, time + TIME_TOLERANCE, side="right"))
        return min(index, self.number_of_components)


class SimulationTimeGrid(TimeGrid):
    """시뮬레이션 시간 격자. 테너 경계를 포함하거나 보간으로 표현할 수 있어야 합니다."""

    @classmethod
    def covering(cls, tenor: TenorStructure, dt: float, end: Optional[float] = None) -> "SimulationTimeGrid":
        """간격이 dt 이하이면서 모든 테너점을 정확히 포함하는 격자를 만듭니다."""
        if dt <= 0.0:
            raise ConfigurationError(f"시뮬레이션 간격은 양수여야 합니다: {dt}")
        end = tenor.last_time if end is None else end
        points = [tenor.first_time]
        boundaries = [t for t in tenor if tenor.first_time < t <= end + TIME_TOLERANCE]
        if not boundaries or boundaries[-1] < end - TIME_TOLERANCE:
            boundaries.append(end)
        for boundary in boundaries:
            start = points[-1]
            steps = max(int(np.ceil((boundary - start) / dt - 1e-9)), 1)
            points.extend(start + (boundary - start) * np.arange(1, steps + 1) / steps)
        return cls(np.round(points, 12))

    def validate_covers(self, tenor: TenorStructure) -> None:
        """모든 고정 시점(T_0..T_{n-1})이 격자 범위 안에 있는지 확인합니다."""
        last_fixing = tenor.time(tenor.number_of_components - 1)
        if abs(self.first_time - tenor.first_time) > TIME_TOLERANCE:
            raise ConfigurationError("시뮬레이션 격자는 첫 테너 시점에서 시작해야 합니다.")
        if self.last_time < last_fixing - TIME_TOLERANCE:
            raise ConfigurationError(
                f"시뮬레이션 격자({self.last_time})가 마지막 고정 시점({last_fixing})에 도달하지 않습니다."
            )
