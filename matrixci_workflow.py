# matrixci_workflow.py
# Workflow for matrixci itself: tests across interpreters, lint and format checks.
from __future__ import annotations

from matrixci import axis, family, on, sh, wf


def _tests(values):
    return [
        sh("Install package", f"python{values['python']} -m pip install -e .[test]"),
        sh("Run pytest", f"python{values['python']} -m pytest -q"),
    ]


def _lint(values):
    return [
        sh("Ruff check", "ruff check src tests", always_run=True),
        sh("Ruff format check", "ruff format --check src tests", always_run=True),
    ]


def workflow():
    return wf(
        "matrixci",
        family(
            "test",
            _tests,
            axis("os", ["ubuntu-latest", "macos-latest"]),
            axis("python", ["3.10", "3.12"]),
            title="Test ({os} + py{python})",
        ),
        family("lint", _lint, title="Lint"),
        on=on(pull_request=True, push=["main"]),
        env={"PYTHONDONTWRITEBYTECODE": "1"},
    )
