from __future__ import annotations

import os
from typing import Iterator

import pytest

os.environ.setdefault("PATHWAY_PERSISTENCE_MODE", "memory")

from aus_pathway.config import get_settings  # noqa: E402
from aus_pathway.telemetry import clear_listeners  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_process_state() -> Iterator[None]:
    clear_listeners()
    get_settings.cache_clear()
    yield
    clear_listeners()
    get_settings.cache_clear()
