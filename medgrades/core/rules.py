from typing import Protocol, Optional, List, Mapping, Sequence, Tuple
from medgrades.core.models import Scope, SEMESTER_PERIODS


class AveragingRule(Protocol):
    tag: str
    restricted_to: Optional[Scope]

    def applies_to(self, scope: Scope) -> bool: ...

    def required_periods(self, scope: Scope) -> List[str]: ...

    def average(self, values: Mapping[str, float], scope: Scope) -> Optional[float]: ...


class TwoPeriodRule:
    """
    Annual subject graded once per semester.
    Annual scope: (sem1 + sem2) / 2. Semester scope: that semester's grade alone.
    `partial` decides the annual case with only one period present:
      "exclude"   -> no average (subject omitted)
      "available" -> average over the present period
    """
    tag = "two_period"
    restricted_to = None

    def __init__(self, periods: Sequence[str] = ("sem1", "sem2"), partial: str = "exclude"):
        if partial not in ("exclude", "available"):
            raise ValueError(f"Unknown partial mode: {partial!r}")
        self.periods = tuple(periods)
        self.partial = partial

    def applies_to(self, scope: Scope) -> bool:
        return True

    def _period_for(self, scope: Scope) -> str:
        # semester1 -> first period, semester2 -> second period
        return self.periods[0] if scope == Scope.SEMESTER_1 else self.periods[1]

    def required_periods(self, scope: Scope) -> List[str]:
        if scope == Scope.ANNUAL:
            return list(self.periods)
        return [self._period_for(scope)]

    def average(self, values: Mapping[str, float], scope: Scope) -> Optional[float]:
        if scope != Scope.ANNUAL:
            return values.get(self._period_for(scope))
        present = [values[p] for p in self.periods if values.get(p) is not None]
        if len(present) == len(self.periods):
            return sum(present) / len(present)
        if present and self.partial == "available":
            return sum(present) / len(present)
        return None


class SinglePeriodRule:
    tag = "single_period"
    restricted_to = None

    def __init__(self, period: str = "single"):
        self.period = period

    def applies_to(self, scope: Scope) -> bool:
        return True

    def required_periods(self, scope: Scope) -> List[str]:
        return [self.period]

    def average(self, values: Mapping[str, float], scope: Scope) -> Optional[float]:
        return values.get(self.period)


class SemesterRestrictedRule:
    """Counted in one designated semester only; absent from the other semester."""
    tag = "semester_restricted"

    def __init__(self, semester: Scope):
        if semester not in SEMESTER_PERIODS:
            raise ValueError(f"Not a semester scope: {semester!r}")
        self.restricted_to = semester
        self.period = SEMESTER_PERIODS[semester]

    def applies_to(self, scope: Scope) -> bool:
        return scope == Scope.ANNUAL or scope == self.restricted_to

    def required_periods(self, scope: Scope) -> List[str]:
        return [self.period] if self.applies_to(scope) else []

    def average(self, values: Mapping[str, float], scope: Scope) -> Optional[float]:
        if not self.applies_to(scope):
            return None
        return values.get(self.period)


class ComponentWeightedRule:
    """
    Weighted mean of components; each component is the plain mean of its fields.
      Batna units:  (exam*4 + (tp_anatomy + tp_histology + td_physiology)/3) / 5
      Genetics:     (exam*2 + td) / 3
      Bechar annual:((sem1 + sem2)/2 * 4 + tp) / 5
    """
    tag = "component_weighted"
    restricted_to = None

    def __init__(self, components: Sequence[Tuple[float, Sequence[str]]]):
        if not components:
            raise ValueError("component_weighted needs at least one component")
        self.components = [(float(w), tuple(fields)) for w, fields in components]
        for w, fields in self.components:
            if w <= 0 or not fields:
                raise ValueError(f"Invalid component: weight={w}, fields={fields!r}")

    def applies_to(self, scope: Scope) -> bool:
        return True

    def required_periods(self, scope: Scope) -> List[str]:
        out: List[str] = []
        for _w, fields in self.components:
            for f in fields:
                if f not in out:
                    out.append(f)
        return out

    def average(self, values: Mapping[str, float], scope: Scope) -> Optional[float]:
        total_w = 0.0
        total_ws = 0.0
        for w, fields in self.components:
            parts = [values.get(f) for f in fields]
            if any(p is None for p in parts):
                return None
            total_ws += w * (sum(parts) / len(parts))
            total_w += w
        return total_ws / total_w
