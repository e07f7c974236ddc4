import math
from typing import Dict, Optional, Tuple, Any, Union, List

from medgrades.core.models import GradeEntry

MIN_GRADE = 0.0
MAX_GRADE = 20.0


def parse_grade(raw: Union[str, float, int, None]) -> Optional[float]:
    """Blank, non-numeric or non-finite input is treated as absent."""
    if raw is None:
        return None
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        text = str(raw).strip().replace(",", ".")
        if not text:
            return None
        try:
            value = float(text)
        except ValueError:
            return None
    if not math.isfinite(value):
        return None
    return value


def clamp_grade(value: float) -> float:
    return max(MIN_GRADE, min(MAX_GRADE, value))


class GradeStore:
    """Per-(subject, period) grades for one calculation session."""

    def __init__(self, entries: Optional[Dict[Tuple[str, str], float]] = None):
        self._values: Dict[Tuple[str, str], float] = dict(entries or {})

    def set_grade(self, subject: str, period: str, raw: Union[str, float, int, None]) -> Optional[float]:
        # stored unclamped so the user can keep typing; commit_grade clamps
        value = parse_grade(raw)
        if value is None:
            self._values.pop((subject, period), None)
        else:
            self._values[(subject, period)] = value
        return value

    def commit_grade(self, subject: str, period: str) -> Optional[float]:
        value = self._values.get((subject, period))
        if value is None:
            return None
        clamped = clamp_grade(value)
        if clamped != value:
            self._values[(subject, period)] = clamped
        return clamped

    def get(self, subject: str, period: str) -> Optional[float]:
        return self._values.get((subject, period))

    def entry(self, subject: str, period: str) -> GradeEntry:
        return GradeEntry(subject, period, self.get(subject, period))

    def entries(self) -> List[GradeEntry]:
        return [GradeEntry(s, p, v) for (s, p), v in self._values.items()]

    def values_for(self, subject: str) -> Dict[str, float]:
        return {p: v for (s, p), v in self._values.items() if s == subject}

    def clear(self) -> None:
        self._values.clear()

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, GradeStore):
            return NotImplemented
        return self._values == other._values

    # ---------- snapshot shape: {subject: {period: value}} ----------
    def to_dict(self) -> Dict[str, Dict[str, float]]:
        out: Dict[str, Dict[str, float]] = {}
        for (s, p), v in self._values.items():
            out.setdefault(s, {})[p] = v
        return out

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Dict[str, Any]]]) -> "GradeStore":
        store = cls()
        data = data or {}
        if not isinstance(data, dict):
            raise ValueError("Grades must map subject -> {period: value}")
        for subject, periods in data.items():
            periods = periods or {}
            if not isinstance(periods, dict):
                raise ValueError(f"{subject}: expected a period map, got {type(periods).__name__}")
            for period, raw in periods.items():
                store.set_grade(subject, period, raw)
        return store
