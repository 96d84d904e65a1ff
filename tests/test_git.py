"""
Snapshots bound to a git revision.

Run with:
    pytest tests/test_git.py -v
"""
import shutil
import subprocess

import pytest

from conftest import py
from matrixci.dsl import family, sh
from matrixci.git_facts import git
from matrixci.matrix import expand_family
from matrixci.model import Outcome
from matrixci.runner import run_instance, snapshot_of

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def _git(cwd, *args):
    subprocess.run(
        ["git", "-c", "user.name=ci", "-c", "user.email=ci@example.com", *args],
        cwd=cwd,
        check=True,
        capture_output=True,
    )


@pytest.fixture
def repo(tmp_path):
    root = tmp_path / "repo"
    root.mkdir()
    _git(root, "init", "-q")
    (root / "version.txt").write_text("one", encoding="utf-8")
    _git(root, "add", ".")
    _git(root, "commit", "-q", "-m", "one")
    return root


def test_snapshot_of_clean_repo_uses_head(repo):
    snap = snapshot_of(repo)
    assert snap.revision == git.head_sha(repo)
    assert git.is_repo(repo)
    assert not git.is_dirty(repo)


def test_snapshot_of_dirty_repo_uses_working_tree(repo):
    (repo / "untracked.txt").write_text("x", encoding="utf-8")
    assert snapshot_of(repo).revision is None


def test_instance_checks_out_bound_revision(repo):
    first = git.head_sha(repo)
    (repo / "version.txt").write_text("two", encoding="utf-8")
    _git(repo, "commit", "-q", "-am", "two")

    check = py("import sys; sys.exit(0 if open('version.txt').read() == 'one' else 1)")
    [inst] = expand_family(family("v", lambda v: [sh("version", check)]))
    run_instance(inst, snapshot_of(repo, revision=first))
    assert inst.outcome is Outcome.SUCCESS


def test_unknown_revision_fails_checkout(repo):
    [inst] = expand_family(family("v", lambda v: [sh("noop", py("pass"))]))
    run_instance(inst, snapshot_of(repo, revision="0" * 40))
    assert inst.outcome is Outcome.FAILURE
    assert inst.reason.startswith("checkout:")


def test_not_a_repo(tmp_path):
    assert not git.is_repo(tmp_path)


@pytest.fixture
def repo_with_crate(repo):
    crate = repo / "crate"
    crate.mkdir()
    (crate / "Cargo.toml").write_text("[package]\n", encoding="utf-8")
    _git(repo, "add", ".")
    _git(repo, "commit", "-q", "-m", "crate")
    return repo


def test_repo_root_from_subdirectory(repo_with_crate):
    assert git.repo_root(repo_with_crate / "crate").resolve() == repo_with_crate.resolve()


def test_subdirectory_snapshot_runs_in_subdirectory(repo_with_crate):
    snap = snapshot_of(repo_with_crate / "crate")
    assert snap.revision == git.head_sha(repo_with_crate)

    check = py("import os,sys; sys.exit(0 if os.path.exists('Cargo.toml') and not os.path.exists('version.txt') else 1)")
    [inst] = expand_family(family("crate", lambda v: [sh("in crate", check)]))
    run_instance(inst, snap)
    assert inst.outcome is Outcome.SUCCESS, inst.reason


def test_subdirectory_missing_at_revision_fails_checkout(repo_with_crate):
    first = git.head_sha(repo_with_crate) + "~1"
    [inst] = expand_family(family("crate", lambda v: [sh("noop", py("pass"))]))
    run_instance(inst, snapshot_of(repo_with_crate / "crate", revision=first))
    assert inst.outcome is Outcome.FAILURE
    assert inst.reason.startswith("checkout:")
