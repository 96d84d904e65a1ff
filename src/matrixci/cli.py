# cli.py
from __future__ import annotations

import json
import sys
from datetime import datetime, timezone
from pathlib import Path

import click

from matrixci.dsl import Workflow
from matrixci.model import SourceSnapshot
from matrixci.policy import default_workflow
from matrixci.runner import (
    DEFAULT_WORKFLOW_FILE,
    execute_run,
    load_workflow,
    snapshot_of,
    start_run,
)
from matrixci.triggers import Event, is_due, parse_event
from matrixci.ui.console import Console, get_console, set_console


def resolve_workflow(workflow_arg: str | None) -> Workflow:
    """
    Workflow from an explicit file, else ./matrixci_workflow.py if present,
    else the built-in policy.

    Raises:
        SystemExit: If an explicit workflow file cannot be found
    """
    console = get_console()

    if workflow_arg:
        workflow_path = Path(workflow_arg)
        if not workflow_path.exists() and workflow_path.suffix != ".py":
            workflow_path = Path(str(workflow_path) + ".py")
        if not workflow_path.exists():
            console.print_error(
                "Workflow file not found",
                f"Could not find workflow file: {workflow_arg}",
                suggestion="Create a workflow file or drop --workflow to use the built-in policy.",
            )
            sys.exit(1)
        return load_workflow(workflow_path)

    default_path = Path(DEFAULT_WORKFLOW_FILE)
    if default_path.exists():
        console.print_debug(f"Using workflow file {default_path}")
        return load_workflow(default_path)
    return default_workflow()


def build_event(event: str, branch: str | None, cron: str | None, revision: str | None, payload: str | None) -> Event:
    if payload:
        data = json.loads(Path(payload).read_text(encoding="utf-8"))
        parsed = parse_event(event, data)
        if revision:
            return Event(kind=parsed.kind, branch=parsed.branch, cron=parsed.cron, revision=revision)
        return parsed
    return Event(kind=event, branch=branch, cron=cron, revision=revision)


def event_options(fn):
    fn = click.option("--payload", default=None, type=click.Path(exists=True, dir_okay=False), help="Webhook JSON payload for the event")(fn)
    fn = click.option("--revision", default=None, help="Source revision to bind the run to (defaults to HEAD)")(fn)
    fn = click.option("--cron", default=None, help="Cadence of a schedule event")(fn)
    fn = click.option("--branch", default=None, help="Target branch of a push event")(fn)
    fn = click.option("--event", "event_name", required=True, help="Event kind: pull_request, push, schedule, ...")(fn)
    fn = click.option("--workflow", default=None, help=f"Workflow file path (defaults to {DEFAULT_WORKFLOW_FILE} if present)")(fn)
    return fn


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and command output)",
)
@click.pass_context
def cli(ctx, debug):
    """matrixci: trigger-gated matrix CI runner."""
    console = Console(debug=debug)
    set_console(console)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@cli.command()
@event_options
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the plan as JSON")
def plan(workflow, event_name, branch, cron, revision, payload, as_json):
    """Show the job instances an event would start, without running them."""
    console = get_console()
    wf = resolve_workflow(workflow)
    event = build_event(event_name, branch, cron, revision, payload)
    # planning never touches the checkout
    run = start_run(event, wf, SourceSnapshot(root=Path(".").resolve(), revision=revision))

    if as_json:
        instances = [] if run is None else [
            {"family": i.family, "name": i.name, "axes": i.values, "steps": [s.run for s in i.steps]}
            for i in run.instances
        ]
        click.echo(json.dumps({"accepted": run is not None, "instances": instances}, indent=2))
        return

    if run is None:
        console.print_ignored(event.kind)
        return
    console.print_header(f"{wf.name}: {len(run.instances)} job instances")
    console.print_plan(run.instances)


@cli.command()
@event_options
@click.option("--workers", default=None, type=int, help="Number of parallel workers (defaults to one per instance)")
@click.option("--isolate/--no-isolate", default=True, show_default=True, help="Give every instance its own checkout")
@click.option("--family", "families", multiple=True, help="Only run these job families")
def run(workflow, event_name, branch, cron, revision, payload, workers, isolate, families):
    """Evaluate an event and, if it qualifies, run the whole matrix.

    Every instance runs on this host. The os axis only names the instance,
    so a passing windows-latest or macos-latest instance says nothing about
    that platform.
    """
    console = get_console()

    try:
        wf = resolve_workflow(workflow)
        if families:
            wf = wf.only(*families)
        event = build_event(event_name, branch, cron, revision, payload)

        the_run = start_run(event, wf, snapshot_of("."))
        if the_run is None:
            console.print_ignored(event.kind)
            return

        console.print_run_started(
            run_id=the_run.id,
            workflow=wf.name,
            event=event.kind,
            revision=the_run.snapshot.revision,
            job_count=len(the_run.instances),
        )

        verdict = execute_run(the_run, wf, max_workers=workers, isolate=isolate)
        console.print_results(verdict)

        if not verdict.success:
            sys.exit(1)

    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)


@cli.command()
@click.option("--workflow", default=None, help=f"Workflow file path (defaults to {DEFAULT_WORKFLOW_FILE} if present)")
@click.option("--at", "at", default=None, help="ISO timestamp to check (defaults to now, UTC)")
def due(workflow, at):
    """Report whether a minute is a scheduled tick of the workflow."""
    wf = resolve_workflow(workflow)
    when = datetime.fromisoformat(at) if at else datetime.now(timezone.utc)
    event = is_due(wf.on, when)
    if event is None:
        click.echo(f"{when.isoformat()}: not due")
        sys.exit(1)
    click.echo(f"{when.isoformat()}: due ({event.cron})")


@cli.command()
@click.option("--host", default=None, help="Bind address (defaults to MATRIXCI_HOST)")
@click.option("--port", default=None, type=int, help="Port (defaults to MATRIXCI_PORT)")
def serve(host, port):
    """Serve the webhook endpoint."""
    import uvicorn
    from matrixci.server import settings

    uvicorn.run(
        "matrixci.server.app:app",
        host=host or settings.HOST,
        port=port or settings.PORT,
    )


if __name__ == "__main__":
    cli()
