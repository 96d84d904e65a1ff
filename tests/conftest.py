import sys

import pytest

from matrixci.model import SourceSnapshot
from matrixci.ui.console import Console, set_console

PY = f'"{sys.executable}"'


def py(code: str) -> str:
    """Shell command running `code` with the current interpreter (no double quotes in code)."""
    return f'{PY} -c "{code}"'


OK = py("import sys; sys.exit(0)")
FAIL = py("import sys; sys.exit(3)")


@pytest.fixture(autouse=True)
def quiet_console():
    set_console(Console(debug=False))
    yield


@pytest.fixture
def snapshot(tmp_path):
    root = tmp_path / "checkout"
    root.mkdir()
    (root / "Cargo.toml").write_text("[workspace]\n", encoding="utf-8")
    return SourceSnapshot(root=root, revision=None)
