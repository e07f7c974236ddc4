from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Dict, Any, Tuple


class Scope(str, Enum):
    SEMESTER_1 = "semester1"
    SEMESTER_2 = "semester2"
    ANNUAL = "annual"


class Status(str, Enum):
    PASS = "pass"
    RETAKE = "retake"
    COMPENSATION_REQUIRED = "compensation_required"


# Semester scope -> the period tag holding that semester's grade
SEMESTER_PERIODS = {
    Scope.SEMESTER_1: "sem1",
    Scope.SEMESTER_2: "sem2",
}

PERIOD_LABELS = {
    "sem1": "semester 1",
    "sem2": "semester 2",
    "single": "grade",
    "exam": "exam grade",
    "tp": "TP grade",
    "td": "TD grade",
    "tp_anatomy": "TP anatomy grade",
    "tp_histology": "TP histology grade",
    "td_physiology": "TD physiology grade",
}


def period_label(period: str) -> str:
    return PERIOD_LABELS.get(period, period.replace("_", " "))


@dataclass(frozen=True)
class Subject:
    name: str
    coefficient: int
    rule: Any  # AveragingRule at runtime


@dataclass(frozen=True)
class Hospital:
    name: str
    min_average: float


@dataclass(frozen=True)
class Thresholds:
    hard_floor: float = 5.0
    passing: float = 10.0


@dataclass(frozen=True)
class Policy:
    id: str
    university: str
    year: int
    name: str
    subjects: Tuple[Subject, ...]
    scopes: Tuple[Scope, ...] = (Scope.ANNUAL,)
    thresholds: Thresholds = field(default_factory=Thresholds)
    pass_label: str = "Pass"
    semester_compensation: bool = False
    warn_optional_when_compensated: bool = True
    hospitals: Tuple[Hospital, ...] = ()

    def __post_init__(self):
        seen = set()
        for s in self.subjects:
            if s.name in seen:
                raise ValueError(f"Duplicate subject {s.name!r} in policy {self.id!r}")
            if s.coefficient <= 0:
                raise ValueError(f"{s.name}: coefficient must be positive, got {s.coefficient}")
            seen.add(s.name)

    def find(self, name: str) -> Optional[Subject]:
        for s in self.subjects:
            if s.name == name:
                return s
        return None

    def subjects_for(self, scope: Scope) -> List[Subject]:
        return [s for s in self.subjects if s.rule.applies_to(scope)]

    def supports(self, scope: Scope) -> bool:
        return scope in self.scopes


@dataclass(frozen=True)
class GradeEntry:
    subject: str
    period: str
    value: Optional[float] = None

    @property
    def is_present(self) -> bool:
        return self.value is not None


@dataclass(frozen=True)
class FieldRef:
    subject: str
    period: str

    def describe(self) -> str:
        return f"{self.subject} - {period_label(self.period)} is required"


@dataclass(frozen=True)
class CalculationResult:
    scope: Scope
    subject_averages: Dict[str, float]
    overall_average: float
    status: Status
    status_label: str
    warnings: List[str] = field(default_factory=list)
    eligible_hospitals: List[str] = field(default_factory=list)

    def to_display(self) -> Dict[str, Any]:
        return {
            "scope": self.scope.value,
            "subject_averages": {k: round(v, 2) for k, v in self.subject_averages.items()},
            "overall_average": round(self.overall_average, 2),
            "status": self.status.value,
            "status_label": self.status_label,
            "warnings": list(self.warnings),
            "eligible_hospitals": list(self.eligible_hospitals),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scope": self.scope.value,
            "subject_averages": dict(self.subject_averages),
            "overall_average": self.overall_average,
            "status": self.status.value,
            "status_label": self.status_label,
            "warnings": list(self.warnings),
            "eligible_hospitals": list(self.eligible_hospitals),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CalculationResult":
        if not isinstance(data.get("subject_averages", {}), dict):
            raise ValueError("Result subject_averages must be an object")
        for key in ("warnings", "eligible_hospitals"):
            if not isinstance(data.get(key, []), list):
                raise ValueError(f"Result {key} must be a list")
        return cls(
            scope=Scope(data["scope"]),
            subject_averages={k: float(v) for k, v in data.get("subject_averages", {}).items()},
            overall_average=float(data["overall_average"]),
            status=Status(data["status"]),
            status_label=data.get("status_label", ""),
            warnings=list(data.get("warnings", [])),
            eligible_hospitals=list(data.get("eligible_hospitals", [])),
        )


@dataclass
class Calculation:
    """Outcome of one gated calculation: either errors or a result, never both."""
    errors: List[str] = field(default_factory=list)
    result: Optional[CalculationResult] = None

    @property
    def blocked(self) -> bool:
        return bool(self.errors)
