import json
import os
from typing import List, Protocol, Dict, Any, Optional

from medgrades.core.models import Policy
from medgrades.core.rule_factory import RuleFactory
from medgrades.core.loaders import load_policies, DATA_ROOT


class PolicyRepository(Protocol):
    def list_policies(self) -> List[Policy]:
        ...

    def get(self, policy_id: str) -> Policy:
        ...


class JsonPolicyRepository:
    def __init__(self, root: str = DATA_ROOT, factory: Optional[RuleFactory] = None):
        self.root = root
        self.factory = factory or RuleFactory()
        self._policies: Optional[Dict[str, Policy]] = None

    def _load(self) -> Dict[str, Policy]:
        if self._policies is None:
            policies: Dict[str, Policy] = {}
            for cfg in load_policies(self.root):
                policy = self.factory.build_policy(cfg)
                if policy.id in policies:
                    raise ValueError(f"Duplicate policy id: {policy.id}")
                policies[policy.id] = policy
            self._policies = policies
        return self._policies

    def list_policies(self) -> List[Policy]:
        return list(self._load().values())

    def get(self, policy_id: str) -> Policy:
        policies = self._load()
        if policy_id not in policies:
            raise KeyError(policy_id)
        return policies[policy_id]


class SnapshotStore(Protocol):
    """Whole-object snapshots keyed by a fixed string; last write wins."""

    def read(self, key: str) -> Optional[Dict[str, Any]]:
        ...

    def write(self, key: str, snapshot: Dict[str, Any]) -> None:
        ...

    def remove(self, key: str) -> None:
        ...


class InMemorySnapshotStore:
    def __init__(self):
        self._data: Dict[str, str] = {}

    def read(self, key: str) -> Optional[Dict[str, Any]]:
        raw = self._data.get(key)
        return None if raw is None else json.loads(raw)

    def write(self, key: str, snapshot: Dict[str, Any]) -> None:
        # serialized so callers never share mutable state with the store
        self._data[key] = json.dumps(snapshot)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileSnapshotStore:
    def __init__(self, directory: str):
        self.directory = directory

    def _path(self, key: str) -> str:
        safe = "".join(c if c.isalnum() or c in "-_." else "_" for c in key)
        return os.path.join(self.directory, f"{safe}.json")

    def read(self, key: str) -> Optional[Dict[str, Any]]:
        path = self._path(key)
        if not os.path.exists(path):
            return None
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    def write(self, key: str, snapshot: Dict[str, Any]) -> None:
        os.makedirs(self.directory, exist_ok=True)
        path = self._path(key)
        tmp = path + ".tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(snapshot, f, ensure_ascii=False)
        os.replace(tmp, path)

    def remove(self, key: str) -> None:
        path = self._path(key)
        if os.path.exists(path):
            os.remove(path)
