from typing import Dict, Any, List

from medgrades.core.models import Policy, Subject, Hospital, Thresholds, Scope
from medgrades.core.rules import (
    TwoPeriodRule,
    SinglePeriodRule,
    SemesterRestrictedRule,
    ComponentWeightedRule,
)


class RuleFactory:
    """
    Build averaging rules (and whole policies) from JSON config.
    The repository calls: factory.build_policy(policy_cfg)
    """

    def from_json(self, rule_cfg: Dict[str, Any]):
        rtype = (rule_cfg.get("type") or "").lower()

        if rtype == "two_period":
            return TwoPeriodRule(
                periods=rule_cfg.get("periods", ("sem1", "sem2")),
                partial=rule_cfg.get("partial", "exclude"),
            )

        if rtype == "single_period":
            return SinglePeriodRule(period=rule_cfg.get("period", "single"))

        if rtype == "semester_restricted":
            semester = int(rule_cfg["semester"])
            if semester not in (1, 2):
                raise ValueError(f"Semester must be 1 or 2: {rule_cfg!r}")
            return SemesterRestrictedRule(Scope.SEMESTER_1 if semester == 1 else Scope.SEMESTER_2)

        if rtype == "component_weighted":
            components = [(c["weight"], c["fields"]) for c in rule_cfg.get("components", [])]
            return ComponentWeightedRule(components)

        raise ValueError(f"Unknown rule type: {rule_cfg!r}")

    def build_policy(self, cfg: Dict[str, Any]) -> Policy:
        subjects: List[Subject] = []
        for s in cfg.get("subjects", []):
            subjects.append(Subject(
                name=s["name"],
                coefficient=int(s["coefficient"]),
                rule=self.from_json(s.get("rule", {"type": "single_period"})),
            ))

        thr = cfg.get("thresholds", {})
        hospitals = tuple(
            Hospital(h["name"], float(h["min_average"])) for h in cfg.get("hospitals", [])
        )

        return Policy(
            id=cfg["id"],
            university=cfg.get("university", ""),
            year=int(cfg.get("year", 1)),
            name=cfg.get("name", cfg["id"]),
            subjects=tuple(subjects),
            scopes=tuple(Scope(x) for x in cfg.get("scopes", ["annual"])),
            thresholds=Thresholds(
                hard_floor=float(thr.get("hard_floor", 5.0)),
                passing=float(thr.get("passing", 10.0)),
            ),
            pass_label=cfg.get("pass_label", "Pass"),
            semester_compensation=bool(cfg.get("semester_compensation", False)),
            warn_optional_when_compensated=bool(cfg.get("warn_optional_when_compensated", True)),
            hospitals=hospitals,
        )
