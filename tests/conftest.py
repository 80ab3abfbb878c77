# tests/conftest.py
import copy
import json
from pathlib import Path

import pytest

from jstrack.core.normalizer import normalize
from jstrack.core.storage import DocumentStore

BASE = "https://javascript.info"

CATALOGUE = {
    "events": {
        "id": "events",
        "title": "Introduction to browser events",
        "url": f"{BASE}/introduction-browser-events",
        "level": "concept",
        "progress": 50,
        "sections": [
            {
                "id": "keydown",
                "title": "Keydown and keyup",
                "url": f"{BASE}/keyboard-events#keydown",
                "applications": [
                    {"project": "demo", "commit": "abc1234", "date": "2024-01-01T10:00:00.000Z"}
                ],
            },
            {"id": "mouse", "title": "Mouse events", "url": f"{BASE}/mouse-events", "applications": []},
        ],
        "applications": [],
    },
    "forms": {
        "id": "forms",
        "title": "Forms: submit",
        "url": f"{BASE}/forms-submit",
        "description": "form validation and submit",
        "level": "concept",
        "progress": 0,
        "sections": [
            {"id": "submit", "title": "Submit event", "url": f"{BASE}/forms-submit#submit", "applications": []},
            {
                "id": "validation",
                "title": "Validation",
                "url": f"{BASE}/forms-submit#validation",
                "applications": [
                    {"project": "shop", "commit": "def5678", "date": "2024-03-01T09:00:00.000Z"}
                ],
            },
        ],
        "applications": [],
    },
    "closures": {
        "id": "closures",
        "title": "Closures",
        "url": f"{BASE}/closure",
        "progress": 0,
        "sections": [
            {"id": "basic", "title": "Basic closures", "url": f"{BASE}/closure#basic", "applications": []}
        ],
    },
    "syntax-basics": {
        "id": "syntax-basics",
        "title": "Code structure",
        "url": f"{BASE}/structure",
        "level": "syntax",
        "progress": 0,
    },
    "timers": {
        "id": "timers",
        "title": "Scheduling: setTimeout and setInterval",
        "url": f"{BASE}/settimeout-setinterval",
        "progress": 40,
    },
}


def closures_raw():
    return {
        "closures": {
            "id": "closures",
            "title": "Closures",
            "progress": 0,
            "sections": [{"id": "basic", "title": "Basic closures", "applications": []}],
        }
    }


def write_json(path: Path, data) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    return path


def read_json(path: Path):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def catalogue_raw():
    return copy.deepcopy(CATALOGUE)


@pytest.fixture
def catalogue(catalogue_raw):
    return normalize(catalogue_raw)


@pytest.fixture
def closures_doc():
    return normalize(closures_raw())


@pytest.fixture
def data_dir(tmp_path, catalogue_raw):
    directory = tmp_path / "kb"
    write_json(directory / "knowledge-base.json", catalogue_raw)
    return directory


@pytest.fixture
def store(data_dir):
    return DocumentStore(data_dir)


class FakeSync:
    """Records what the store asks of the data repository."""

    def __init__(self):
        self.ensured = 0
        self.commits = []

    def ensure_repo(self):
        self.ensured += 1
        return True

    def commit_and_push(self, filename, message):
        self.commits.append((filename, message))


@pytest.fixture
def fake_sync():
    return FakeSync()
