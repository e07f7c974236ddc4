import json
import os
from typing import Any, Dict, List

DATA_ROOT = os.path.join(os.path.dirname(os.path.dirname(__file__)), "data")


def _read(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def load_policy(path: str) -> Dict[str, Any]:
    return _read(path)


def load_policies(root: str = DATA_ROOT) -> List[Dict[str, Any]]:
    # data/<university>/<year>.json
    configs: List[Dict[str, Any]] = []
    for university in sorted(os.listdir(root)):
        uni_dir = os.path.join(root, university)
        if not os.path.isdir(uni_dir):
            continue
        for name in sorted(os.listdir(uni_dir)):
            if name.endswith(".json"):
                configs.append(load_policy(os.path.join(uni_dir, name)))
    return configs
