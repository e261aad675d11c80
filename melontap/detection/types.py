"""Dataclasses shared across detection, scoring, and session layers."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict


class DetectorState(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"
    DETECTED = "detected"


class Verdict(str, Enum):
    RIPE = "ripe"
    BORDERLINE = "borderline"
    UNRIPE = "unripe"


@dataclass(frozen=True)
class ThresholdPair:
    absolute_threshold: float
    relative_threshold: float


@dataclass(frozen=True)
class DetectionWindow:
    """Half-open bin range ``[min_index, max_index)`` covering the thump band."""

    min_index: int
    max_index: int
    bin_hz: float

    @property
    def degenerate(self) -> bool:
        return self.min_index >= self.max_index

    @property
    def width(self) -> int:
        return max(0, self.max_index - self.min_index)


@dataclass(frozen=True)
class DetectionEvent:
    base_frequency_hz: float
    peak_index: int
    peak_amplitude: float
    average_amplitude: float


@dataclass(frozen=True)
class RipenessResult:
    base_frequency_hz: float
    ripeness_index: float
    ripeness_score: float
    sweetness_brix: float
    verdict: Verdict
    verdict_class: str
    label: str

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["verdict"] = self.verdict.value
        return payload
