from typing import List, Dict, Optional

from medgrades.core.models import Policy, Scope, FieldRef, CalculationResult, Calculation
from medgrades.core.grade_store import GradeStore
from medgrades.core.status import derive_status


def _check_scope(policy: Policy, scope: Scope) -> Scope:
    scope = Scope(scope)
    if not policy.supports(scope):
        raise ValueError(f"Policy {policy.id!r} does not support scope {scope.value!r}")
    return scope


def missing_fields(policy: Policy, store: GradeStore, scope: Scope) -> List[FieldRef]:
    scope = _check_scope(policy, scope)
    missing: List[FieldRef] = []
    for subject in policy.subjects_for(scope):
        for period in subject.rule.required_periods(scope):
            if store.get(subject.name, period) is None:
                missing.append(FieldRef(subject.name, period))
    return missing


def validate_for_scope(policy: Policy, store: GradeStore, scope: Scope) -> List[str]:
    """Every missing required field for the scope, reported at once."""
    return [f.describe() for f in missing_fields(policy, store, scope)]


def weighted_average(averages: Dict[str, float], coefficients: Dict[str, int]) -> float:
    total_w = 0
    total_ws = 0.0
    for name, avg in averages.items():
        w = coefficients[name]
        total_ws += avg * w
        total_w += w
    return 0.0 if total_w == 0 else total_ws / total_w


def compute_scope(policy: Policy, store: GradeStore, scope: Scope) -> CalculationResult:
    """
    Pure calculation over the store. Subjects lacking inputs are omitted from both the
    numerator and the denominator of the overall average; nothing is rounded here.
    """
    scope = _check_scope(policy, scope)
    subject_averages: Dict[str, float] = {}
    coefficients: Dict[str, int] = {}

    for subject in policy.subjects_for(scope):
        avg: Optional[float] = subject.rule.average(store.values_for(subject.name), scope)
        if avg is None:
            continue
        subject_averages[subject.name] = avg
        coefficients[subject.name] = subject.coefficient

    overall = weighted_average(subject_averages, coefficients)
    status, label, warnings, hospitals = derive_status(policy, scope, subject_averages, overall)

    return CalculationResult(
        scope=scope,
        subject_averages=subject_averages,
        overall_average=overall,
        status=status,
        status_label=label,
        warnings=warnings,
        eligible_hospitals=hospitals,
    )


def calculate(policy: Policy, store: GradeStore, scope: Scope) -> Calculation:
    """Validation gate, then computation; a blocked calculation carries no result."""
    errors = validate_for_scope(policy, store, scope)
    if errors:
        return Calculation(errors=errors)
    return Calculation(result=compute_scope(policy, store, scope))
