from __future__ import annotations

import sys
from collections import Counter
from pathlib import Path
from typing import List

import pytest

BASE_DIR = Path(__file__).resolve().parent.parent
SRC_DIR = (BASE_DIR / "src").resolve()

for path in (SRC_DIR, BASE_DIR):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))


def pytest_collection_modifyitems(
    session: pytest.Session,
    config: pytest.Config,
    items: List[pytest.Item],
) -> None:
    """Reject parametrized scenarios that reuse an id within one test."""
    del session
    del config

    counts = Counter(item.nodeid for item in items)
    duplicates = sorted(nodeid for nodeid, n in counts.items() if n > 1)

    if not duplicates:
        return

    lines = "\n".join(f"- {nodeid}" for nodeid in duplicates)
    raise pytest.UsageError(f"Duplicate pytest nodeids detected during collection:\n{lines}")
