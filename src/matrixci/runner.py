# runner.py
from __future__ import annotations

import os
import runpy
import shutil
import subprocess
import tempfile
import uuid
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, List, Optional

from .aggregate import RunVerdict, aggregate
from .dsl import Workflow
from .git_facts import git
from .matrix import expand_all
from .model import JobInstance, Outcome, SourceSnapshot, Step, StepResult
from .step_workflows.toolchain import TOOLCHAIN
from .triggers import Event, evaluate
from .ui.console import get_console


@dataclass
class CIError(Exception):
    """
    Structured CI error with enough context for:
      - clean CLI output
      - the run report
      - debugging without full tracebacks
    """
    kind: str
    job: str
    step: str | None
    message: str
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        lines = [f"{self.kind}: {self.message}", f"job={self.job}"]
        if self.step:
            lines.append(f"step={self.step}")
        for k, v in self.details.items():
            lines.append(f"{k}={v}")
        return "\n".join(lines)


@dataclass
class StepFailure(Exception):
    job: str
    step: str
    cmd: str
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    def __str__(self) -> str:
        return f"[{self.job}] step '{self.step}' failed (exit={self.exit_code}): {self.cmd}"


TOOL_HINTS = {
    "rustup": "Install rustup (https://rustup.rs) or fix PATH.",
    "cargo": "Install a Rust toolchain via rustup or fix PATH.",
    "git": "Install Git or fix PATH.",
}

# shells report "command not found" as 127
_NOT_FOUND = 127

# tail kept from each command's output
_OUTPUT_TAIL = 4000

DEFAULT_WORKFLOW_FILE = "matrixci_workflow.py"


# ----------------------------------------------------------------------
# Workflow loading (local file)
# ----------------------------------------------------------------------

def load_workflow(path: str | Path) -> Workflow:
    """
    Load a workflow from a python file path.

    The file must define either:
      - workflow() -> Workflow
      - WORKFLOW = Workflow(...)
    """
    wf_path = Path(path).expanduser().resolve()
    if not wf_path.exists():
        raise FileNotFoundError(f"Workflow file not found: {wf_path}")
    if wf_path.suffix != ".py":
        raise ValueError(f"Workflow must be a .py file, got: {wf_path.name}")

    module_name = f"matrixci_workflow_{wf_path.stem}"
    globals_dict = runpy.run_path(str(wf_path), run_name=module_name)

    result = None
    if "workflow" in globals_dict and callable(globals_dict["workflow"]):
        result = globals_dict["workflow"]()
    elif "WORKFLOW" in globals_dict:
        result = globals_dict["WORKFLOW"]

    if not isinstance(result, Workflow):
        raise TypeError(
            "Workflow file must return/define a Workflow. "
            "Define workflow() -> Workflow or WORKFLOW = wf(...)."
        )
    return result


# ----------------------------------------------------------------------
# Run
# ----------------------------------------------------------------------

@dataclass
class Run:
    """One invocation of the policy, bound to a single event and source snapshot."""
    id: str
    event: Event
    snapshot: SourceSnapshot
    instances: List[JobInstance]
    verdict: Optional[RunVerdict] = None


def start_run(event: Event, workflow: Workflow, snapshot: SourceSnapshot) -> Optional[Run]:
    """
    Trigger evaluation + matrix expansion.

    Returns None when the event does not qualify (not an error: no run).
    """
    if not evaluate(event, workflow.on):
        return None
    if event.revision:
        snapshot = replace(snapshot, revision=event.revision)
    return Run(
        id=str(uuid.uuid4()),
        event=event,
        snapshot=snapshot,
        instances=expand_all(workflow.families),
    )


def snapshot_of(root: str | Path = ".", revision: Optional[str] = None) -> SourceSnapshot:
    """Snapshot of `root`; HEAD is used when no revision is given and root is a clean repo."""
    root_p = Path(root).resolve()
    if revision is None and git.is_repo(root_p) and not git.is_dirty(root_p):
        revision = git.head_sha(root_p)
    return SourceSnapshot(root=root_p, revision=revision)


# ----------------------------------------------------------------------
# Execution primitives
# ----------------------------------------------------------------------

def _checkout(inst: JobInstance, snapshot: SourceSnapshot, dest: Path) -> Path:
    """
    Private copy of the snapshot for one instance.

    When the snapshot root is a subdirectory of a repository the whole
    repository is cloned and the matching subdirectory is returned.
    """
    try:
        if snapshot.revision and git.is_repo(snapshot.root):
            top = git.repo_root(snapshot.root).resolve()
            workdir = git.clone_at(top, snapshot.revision, dest) / snapshot.root.resolve().relative_to(top)
            if not workdir.is_dir():
                raise FileNotFoundError(f"{workdir.relative_to(dest)} does not exist at {snapshot.revision}")
            return workdir
        shutil.copytree(snapshot.root, dest, ignore=shutil.ignore_patterns(".git"))
        return dest
    except (subprocess.CalledProcessError, OSError) as e:
        details = {"revision": snapshot.revision or "<working tree>"}
        stderr = getattr(e, "stderr", None)
        if stderr:
            details["stderr"] = stderr.strip()
        raise CIError(
            kind="checkout",
            job=inst.name,
            step=None,
            message=f"could not check out {snapshot.root}: {e}",
            details=details,
        ) from e


def _run_step(inst: JobInstance, step: Step, workdir: Path, env: Dict[str, str]) -> StepResult:
    cwd = (workdir / (step.cwd or ".")).resolve()
    if not cwd.exists():
        raise FileNotFoundError(f"[{inst.name}] step '{step.name}' cwd not found: {cwd}")

    step_env = os.environ.copy()
    step_env.update(env)
    step_env.update(step.env)

    proc = subprocess.run(
        step.run,
        shell=True,
        cwd=str(cwd),
        env=step_env,
        text=True,
        capture_output=True,
    )
    result = StepResult(
        name=step.name,
        cmd=step.run,
        exit_code=proc.returncode,
        stdout=proc.stdout[-_OUTPUT_TAIL:],
        stderr=proc.stderr[-_OUTPUT_TAIL:],
    )
    inst.results.append(result)

    if proc.returncode != 0:
        raise StepFailure(
            job=inst.name,
            step=step.name,
            cmd=step.run,
            exit_code=proc.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
        )
    return result


def _failure_reason(step: Step, failure: StepFailure) -> str:
    details: Dict[str, str] = {"exit_code": str(failure.exit_code)}
    if failure.exit_code == _NOT_FOUND:
        tool = step.run.split()[0] if step.run.split() else ""
        hint = TOOL_HINTS.get(tool)
        if hint:
            details["hint"] = hint

    if step.kind == TOOLCHAIN:
        return str(CIError(
            kind="toolchain_activation",
            job=failure.job,
            step=failure.step,
            message=str(failure),
            details=details,
        ))
    if "hint" in details:
        return f"{failure}\nhint={details['hint']}"
    return str(failure)


def _run_steps(inst: JobInstance, workdir: Path, env: Dict[str, str]) -> None:
    """
    Steps run strictly in order.

    - a failed ordinary step aborts the rest of the instance
    - a failed `always_run` checkpoint lets later checkpoints run, but not
      ordinary steps
    The instance outcome is the worst outcome among its steps.
    """
    console = get_console()
    aborted = False
    failed = False

    for step in inst.steps:
        if aborted or (failed and not step.always_run):
            inst.results.append(StepResult(name=step.name, cmd=step.run, exit_code=None, skipped=True))
            continue

        console.print_instance_step(inst.name, step.name)
        try:
            _run_step(inst, step, workdir, env)
        except StepFailure as e:
            reason = _failure_reason(step, e)
            console.print_instance_failure(inst.name, step.name, reason, e.stderr)
            if not failed:
                inst.reason = reason
            failed = True
            if not step.always_run:
                aborted = True

    inst.outcome = Outcome.FAILURE if failed else Outcome.SUCCESS


def run_instance(
    inst: JobInstance,
    snapshot: SourceSnapshot,
    *,
    env: Optional[Dict[str, str]] = None,
    isolate: bool = True,
) -> JobInstance:
    """
    Execute one instance to completion. Never raises: every error becomes the
    instance's failure reason so that siblings are unaffected.
    """
    env = dict(env or {})
    try:
        if not isolate:
            _run_steps(inst, snapshot.root, env)
        else:
            with tempfile.TemporaryDirectory(prefix="matrixci-") as tmp:
                workdir = _checkout(inst, snapshot, Path(tmp) / "src")
                _run_steps(inst, workdir, env)
    except Exception as e:
        inst.outcome = Outcome.FAILURE
        inst.reason = inst.reason or str(e)
        get_console().print_instance_failure(inst.name, None, str(e), None)
    return inst


def run_instances(
    instances: List[JobInstance],
    snapshot: SourceSnapshot,
    *,
    env: Optional[Dict[str, str]] = None,
    max_workers: int | None = None,
    isolate: bool = True,
) -> List[JobInstance]:
    """
    Run every instance in parallel. No fail-fast: every instance is scheduled
    and awaited regardless of earlier failures.
    """
    if not instances:
        return []

    if max_workers is None:
        max_workers = len(instances)

    console = get_console()
    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
        futures = {
            pool.submit(run_instance, inst, snapshot, env=env, isolate=isolate): inst
            for inst in instances
        }
        for fut in as_completed(futures):
            inst = fut.result()
            console.print_instance_done(inst.name, inst.outcome.value)

    return instances


def execute_run(
    run: Run,
    workflow: Workflow,
    *,
    max_workers: int | None = None,
    isolate: bool = True,
) -> RunVerdict:
    run_instances(
        run.instances,
        run.snapshot,
        env=workflow.env,
        max_workers=max_workers,
        isolate=isolate,
    )
    run.verdict = aggregate(run.instances)
    return run.verdict
