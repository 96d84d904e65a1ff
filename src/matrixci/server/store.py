from __future__ import annotations

import threading
from typing import Dict, List, Optional

from ..runner import Run


class RunStore:
    """Runs known to this process. Lives and dies with the process; nothing is persisted."""

    def __init__(self) -> None:
        self._runs: Dict[str, Run] = {}
        self._lock = threading.Lock()

    def add(self, run: Run) -> None:
        with self._lock:
            self._runs[run.id] = run

    def get(self, run_id: str) -> Optional[Run]:
        with self._lock:
            return self._runs.get(run_id)

    def ids(self) -> List[str]:
        with self._lock:
            return list(self._runs)


store = RunStore()
