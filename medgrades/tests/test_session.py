import json

import pytest

from medgrades.core.models import Scope, Status
from medgrades.core.repositories import (
    JsonPolicyRepository,
    InMemorySnapshotStore,
    JsonFileSnapshotStore,
)
from medgrades.core.session import CalculationSession, SessionState, default_key

repo = JsonPolicyRepository()


def filled_session(snapshots=None, grade=12):
    session = CalculationSession(repo.get("alger-second-year"), snapshots)
    for s in session.policy.subjects:
        session.set_grade(s.name, "single", str(grade))
        session.commit_grade(s.name, "single")
    return session


def test_state_round_trip():
    session = filled_session()
    session.calculate()
    state = session.state
    assert SessionState.from_dict(state.to_dict()) == state
    assert SessionState.from_dict(json.loads(json.dumps(state.to_dict()))) == state


def test_snapshot_written_after_every_mutation():
    snapshots = InMemorySnapshotStore()
    session = CalculationSession(repo.get("alger-second-year"), snapshots)
    session.set_grade("Digestive", "single", "25")
    assert snapshots.read(session.key)["grades"] == {"Digestive": {"single": 25.0}}
    session.commit_grade("Digestive", "single")
    assert snapshots.read(session.key)["grades"] == {"Digestive": {"single": 20.0}}


def test_session_reloads_snapshot(tmp_path):
    snapshots = JsonFileSnapshotStore(str(tmp_path))
    first = filled_session(snapshots)
    outcome = first.calculate()
    assert not outcome.blocked

    second = CalculationSession(repo.get("alger-second-year"), snapshots)
    assert second.state == first.state
    assert second.result.status == Status.PASS


def test_blocked_calculation_reports_errors():
    session = CalculationSession(repo.get("alger-second-year"))
    outcome = session.calculate()
    assert outcome.blocked
    assert len(session.errors) == 7
    assert session.result is None
    session.set_grade("Digestive", "single", "10")
    assert session.errors == []


def test_scope_change_clears_result():
    session = CalculationSession(repo.get("alger-first-year"), InMemorySnapshotStore())
    assert session.scope == Scope.SEMESTER_1
    for s in session.policy.subjects_for(Scope.SEMESTER_1):
        session.set_grade(s.name, "sem1", 14)
    session.calculate()
    assert session.result is not None
    session.set_scope("annual")
    assert session.result is None
    assert session.scope == Scope.ANNUAL
    assert session.grades.get("Anatomie", "sem1") == 14.0


def test_reset_clears_everything():
    snapshots = InMemorySnapshotStore()
    session = filled_session(snapshots)
    session.calculate()
    session.reset()
    assert len(session.grades) == 0
    assert session.result is None
    assert session.errors == []
    assert snapshots.read(default_key(session.policy)) is None


def test_corrupt_snapshot_starts_fresh(tmp_path):
    snapshots = JsonFileSnapshotStore(str(tmp_path))
    policy = repo.get("alger-second-year")
    (tmp_path / "medgrades_alger-second-year.json").write_text("{not json", encoding="utf-8")
    session = CalculationSession(policy, snapshots)
    assert len(session.grades) == 0
    assert session.result is None


def test_unsupported_saved_scope_is_dropped():
    snapshots = InMemorySnapshotStore()
    policy = repo.get("constantine-first-year")
    snapshots.write(default_key(policy), {"grades": {}, "result": None, "scope": "semester2"})
    session = CalculationSession(policy, snapshots)
    assert session.scope == Scope.ANNUAL


@pytest.mark.parametrize("snapshot", [
    [],
    "grades",
    {"grades": {"Digestive": 12}, "result": None, "scope": "annual"},
    {"grades": [], "result": None, "scope": "annual"},
    {"grades": {}, "result": [1, 2], "scope": "annual"},
    {"grades": {}, "result": {"scope": "annual", "overall_average": 12, "status": "pass",
                              "subject_averages": [12]}, "scope": "annual"},
    {"grades": {}, "result": None, "scope": "trimester"},
])
def test_wrong_shape_snapshot_starts_fresh(snapshot):
    snapshots = InMemorySnapshotStore()
    policy = repo.get("alger-second-year")
    snapshots.write(default_key(policy), snapshot)
    session = CalculationSession(policy, snapshots)
    assert len(session.grades) == 0
    assert session.result is None
    assert session.scope == Scope.ANNUAL
