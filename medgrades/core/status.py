from typing import Dict, List, Tuple, Sequence

from medgrades.core.models import Policy, Scope, Status, Hospital, SEMESTER_PERIODS


def classify(average: float, policy: Policy) -> str:
    """'mandatory' below the hard floor, 'optional' below passing, else 'passing'."""
    if average < policy.thresholds.hard_floor:
        return "mandatory"
    if average < policy.thresholds.passing:
        return "optional"
    return "passing"


def eligible_hospitals(table: Sequence[Hospital], overall: float) -> List[str]:
    return [h.name for h in table if overall >= h.min_average]


def _other_semester(scope: Scope) -> int:
    return 2 if scope == Scope.SEMESTER_1 else 1


def _semester_status(policy: Policy, scope: Scope, subject_averages: Dict[str, float],
                     overall: float) -> Tuple[Status, str, List[str]]:
    # semester view: a low grade is terminal only for subjects restricted to this semester
    warnings: List[str] = []
    direct = False
    danger = False
    for name, avg in subject_averages.items():
        if classify(avg, policy) != "mandatory":
            continue
        subject = policy.find(name)
        if subject is not None and subject.rule.restricted_to == scope:
            direct = True
            warnings.append(f"Direct retake required for {name}")
        else:
            danger = True
            warnings.append(
                f"Danger: retake for {name}, compensation required in semester {_other_semester(scope)}"
            )

    if direct:
        return Status.RETAKE, "Retake", warnings
    if danger:
        return (Status.COMPENSATION_REQUIRED,
                f"Danger: compensation required in semester {_other_semester(scope)}",
                warnings)
    if overall >= policy.thresholds.passing:
        return Status.PASS, policy.pass_label, warnings
    return Status.RETAKE, "Retake", warnings


def derive_status(policy: Policy, scope: Scope, subject_averages: Dict[str, float],
                  overall: float) -> Tuple[Status, str, List[str], List[str]]:
    """Return (status, status_label, warnings, eligible_hospitals)."""
    if policy.semester_compensation and scope in SEMESTER_PERIODS:
        status, label, warnings = _semester_status(policy, scope, subject_averages, overall)
        return status, label, warnings, []

    mandatory = [n for n, a in subject_averages.items() if classify(a, policy) == "mandatory"]
    optional = [n for n, a in subject_averages.items() if classify(a, policy) == "optional"]

    mandatory_warnings = [f"Mandatory retake for {n}" for n in mandatory]
    optional_warnings = [f"Optional retake for {n}" for n in optional]

    if overall < policy.thresholds.passing:
        return Status.RETAKE, "Retake", mandatory_warnings + optional_warnings, []

    if mandatory:
        # compensation by the overall average never waives a subject below the floor
        warnings = list(mandatory_warnings)
        if policy.warn_optional_when_compensated:
            warnings += optional_warnings
        return Status.RETAKE, "Retake", warnings, []

    return Status.PASS, policy.pass_label, [], eligible_hospitals(policy.hospitals, overall)
