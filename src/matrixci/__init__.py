from .dsl import Workflow, axis, family, sh, wf
from .matrix import expand, expand_all, expand_family
from .model import Axis, JobFamily, JobInstance, Outcome, SourceSnapshot, Step
from .runner import Run, execute_run, load_workflow, run_instances, start_run
from .triggers import Event, evaluate, on, parse_event

__all__ = [
    "Workflow", "axis", "family", "sh", "wf",
    "expand", "expand_all", "expand_family",
    "Axis", "JobFamily", "JobInstance", "Outcome", "SourceSnapshot", "Step",
    "Run", "execute_run", "load_workflow", "run_instances", "start_run",
    "Event", "evaluate", "on", "parse_event",
]
