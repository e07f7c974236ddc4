import logging
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Union

from medgrades.core.models import Policy, Scope, CalculationResult, Calculation
from medgrades.core.grade_store import GradeStore
from medgrades.core.engine import calculate
from medgrades.core.repositories import SnapshotStore

logger = logging.getLogger(__name__)


def default_key(policy: Policy) -> str:
    return f"medgrades:{policy.id}"


@dataclass
class SessionState:
    grades: GradeStore = field(default_factory=GradeStore)
    result: Optional[CalculationResult] = None
    scope: Scope = Scope.ANNUAL

    def to_dict(self) -> Dict[str, Any]:
        return {
            "grades": self.grades.to_dict(),
            "result": None if self.result is None else self.result.to_dict(),
            "scope": self.scope.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionState":
        if not isinstance(data, dict):
            raise ValueError(f"Snapshot must be an object, got {type(data).__name__}")
        result = data.get("result")
        if result is not None and not isinstance(result, dict):
            raise ValueError("Snapshot result must be an object")
        return cls(
            grades=GradeStore.from_dict(data.get("grades")),
            result=None if result is None else CalculationResult.from_dict(result),
            scope=Scope(data.get("scope", Scope.ANNUAL.value)),
        )


class CalculationSession:
    """
    Owns the single Grade Store of one calculator page.

    The snapshot is read once here and rewritten in full after every mutation.
    Changing scope drops the previous result; reset clears grades, result and
    validation errors together and deletes the snapshot.
    """

    def __init__(self, policy: Policy, snapshots: Optional[SnapshotStore] = None,
                 key: Optional[str] = None):
        self.policy = policy
        self.snapshots = snapshots
        self.key = key or default_key(policy)
        self.errors: List[str] = []
        self.state = self._load()

    # ---------- persistence ----------
    def _initial_scope(self) -> Scope:
        return self.policy.scopes[0]

    def _load(self) -> SessionState:
        fresh = SessionState(scope=self._initial_scope())
        if self.snapshots is None:
            return fresh
        try:
            data = self.snapshots.read(self.key)
            if data is None:
                return fresh
            state = SessionState.from_dict(data)
        except (ValueError, KeyError, TypeError):
            logger.exception("Failed to load saved data for %s", self.key)
            return fresh
        if not self.policy.supports(state.scope):
            logger.warning("Saved scope %s not supported by %s; ignoring", state.scope.value, self.policy.id)
            state.scope = self._initial_scope()
            state.result = None
        return state

    def _save(self) -> None:
        if self.snapshots is not None:
            self.snapshots.write(self.key, self.state.to_dict())

    # ---------- accessors ----------
    @property
    def grades(self) -> GradeStore:
        return self.state.grades

    @property
    def result(self) -> Optional[CalculationResult]:
        return self.state.result

    @property
    def scope(self) -> Scope:
        return self.state.scope

    # ---------- mutations ----------
    def set_grade(self, subject: str, period: str, raw: Union[str, float, int, None]) -> Optional[float]:
        value = self.state.grades.set_grade(subject, period, raw)
        self.errors = []
        self._save()
        return value

    def commit_grade(self, subject: str, period: str) -> Optional[float]:
        value = self.state.grades.commit_grade(subject, period)
        self._save()
        return value

    def set_scope(self, scope: Union[Scope, str]) -> None:
        scope = Scope(scope)
        if not self.policy.supports(scope):
            raise ValueError(f"Policy {self.policy.id!r} does not support scope {scope.value!r}")
        self.state.scope = scope
        self.state.result = None
        self.errors = []
        self._save()

    def calculate(self) -> Calculation:
        outcome = calculate(self.policy, self.state.grades, self.state.scope)
        self.errors = list(outcome.errors)
        if not outcome.blocked:
            self.state.result = outcome.result
        self._save()
        return outcome

    def reset(self) -> None:
        self.state = SessionState(scope=self.state.scope)
        self.errors = []
        if self.snapshots is not None:
            self.snapshots.remove(self.key)
