import json

import pytest

from medgrades.core.models import Scope
from medgrades.core.repositories import (
    JsonPolicyRepository,
    InMemorySnapshotStore,
    JsonFileSnapshotStore,
)


def test_shipped_policies_load():
    repo = JsonPolicyRepository()
    ids = {p.id for p in repo.list_policies()}
    assert ids == {
        "alger-first-year",
        "alger-second-year",
        "batna-second-year",
        "bechar-first-year",
        "constantine-first-year",
    }


def test_policy_contents():
    repo = JsonPolicyRepository()
    alger = repo.get("alger-first-year")
    assert alger.scopes == (Scope.SEMESTER_1, Scope.SEMESTER_2, Scope.ANNUAL)
    assert sum(s.coefficient for s in alger.subjects) == 16
    assert [s.name for s in alger.subjects_for(Scope.SEMESTER_2)][-2:] == ["Physiologie", "Histologie"]

    batna = repo.get("batna-second-year")
    assert sum(s.coefficient for s in batna.subjects) == 24
    assert batna.find("Immunology").rule.required_periods(Scope.ANNUAL) == ["exam"]

    second = repo.get("alger-second-year")
    assert second.hospitals[0].name == "Mostafa"
    assert second.hospitals[0].min_average == 14.0


def test_unknown_policy_raises_key_error():
    with pytest.raises(KeyError):
        JsonPolicyRepository().get("oran-first-year")


def test_repository_reads_custom_root(tmp_path):
    uni = tmp_path / "oran"
    uni.mkdir()
    (uni / "first_year.json").write_text(json.dumps({
        "id": "oran-first-year",
        "subjects": [{"name": "Anatomie", "coefficient": 2, "rule": {"type": "two_period"}}],
    }), encoding="utf-8")
    repo = JsonPolicyRepository(root=str(tmp_path))
    assert [p.id for p in repo.list_policies()] == ["oran-first-year"]


def test_in_memory_snapshot_store():
    store = InMemorySnapshotStore()
    assert store.read("k") is None
    snap = {"grades": {"A": {"single": 12.0}}, "result": None, "scope": "annual"}
    store.write("k", snap)
    snap["grades"]["A"]["single"] = 0.0
    assert store.read("k")["grades"]["A"]["single"] == 12.0
    store.remove("k")
    assert store.read("k") is None


def test_json_file_snapshot_store_last_write_wins(tmp_path):
    store = JsonFileSnapshotStore(str(tmp_path / "sessions"))
    store.write("medgrades:alger-first-year", {"grades": {}, "result": None, "scope": "semester1"})
    store.write("medgrades:alger-first-year", {"grades": {}, "result": None, "scope": "annual"})
    assert store.read("medgrades:alger-first-year")["scope"] == "annual"
    store.remove("medgrades:alger-first-year")
    assert store.read("medgrades:alger-first-year") is None
    store.remove("medgrades:alger-first-year")
