"""
Command line: plan, run, due.

Run with:
    pytest tests/test_cli.py -v
"""
import json

import pytest
from click.testing import CliRunner

from matrixci.cli import cli

WORKFLOW_FILE = """
import sys
from matrixci import wf, family, axis, sh, on

PY = '"' + sys.executable + '"'

def _steps(values):
    code = 'import sys; sys.exit({{code}})'.format(code=values['code'])
    return [sh('check', PY + ' -c "' + code + '"')]

def workflow():
    return wf(
        'cli-wf',
        family('t', _steps, axis('code', {codes!r}), title='T ({{code}})'),
        on=on(pull_request=True, push=['main']),
    )
"""


@pytest.fixture
def runner():
    return CliRunner()


def _write_workflow(path, codes):
    path.write_text(WORKFLOW_FILE.format(codes=codes), encoding="utf-8")
    return str(path)


class TestPlan:

    def test_push_to_main_json(self, runner, tmp_path):
        with runner.isolated_filesystem(temp_dir=tmp_path):
            result = runner.invoke(cli, ["plan", "--event", "push", "--branch", "main", "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["accepted"] is True
        assert len(data["instances"]) == 16

    def test_pull_request_text(self, runner, tmp_path):
        with runner.isolated_filesystem(temp_dir=tmp_path):
            result = runner.invoke(cli, ["plan", "--event", "pull_request"])
        assert result.exit_code == 0
        assert "16 job instances" in result.output
        assert "Docs" in result.output

    def test_unrelated_event(self, runner, tmp_path):
        with runner.isolated_filesystem(temp_dir=tmp_path):
            result = runner.invoke(cli, ["plan", "--event", "issue_comment", "--json"])
        assert json.loads(result.output) == {"accepted": False, "instances": []}

    def test_payload_file(self, runner, tmp_path):
        payload = tmp_path / "push.json"
        payload.write_text(json.dumps({"ref": "refs/heads/main", "after": "abc"}), encoding="utf-8")
        with runner.isolated_filesystem(temp_dir=tmp_path):
            result = runner.invoke(cli, ["plan", "--event", "push", "--payload", str(payload), "--json"])
        assert json.loads(result.output)["accepted"] is True

    def test_missing_workflow_file(self, runner, tmp_path):
        with runner.isolated_filesystem(temp_dir=tmp_path):
            result = runner.invoke(cli, ["plan", "--event", "push", "--workflow", "nope.py"])
        assert result.exit_code == 1


class TestRun:

    def test_help_says_os_is_a_label(self, runner):
        result = runner.invoke(cli, ["run", "--help"])
        assert result.exit_code == 0
        assert "The os axis only names the instance" in " ".join(result.output.split())

    def test_green_run(self, runner, tmp_path):
        wf_path = _write_workflow(tmp_path / "ci_workflow.py", ["0"])
        with runner.isolated_filesystem(temp_dir=tmp_path):
            result = runner.invoke(cli, ["run", "--workflow", wf_path, "--event", "push", "--branch", "main"])
        assert result.exit_code == 0, result.output
        assert "RUN: SUCCESS" in result.output

    def test_red_run_reports_every_failure(self, runner, tmp_path):
        wf_path = _write_workflow(tmp_path / "ci_workflow.py", ["0", "1", "2"])
        with runner.isolated_filesystem(temp_dir=tmp_path):
            result = runner.invoke(cli, ["run", "--workflow", wf_path, "--event", "pull_request", "--no-isolate"])
        assert result.exit_code == 1
        assert "RUN: FAILURE (1/3 succeeded)" in result.output
        assert "T (1): FAILURE" in result.output
        assert "T (2): FAILURE" in result.output
        assert "T (0): SUCCESS" in result.output

    def test_ignored_event_exits_zero(self, runner, tmp_path):
        wf_path = _write_workflow(tmp_path / "ci_workflow.py", ["1"])
        with runner.isolated_filesystem(temp_dir=tmp_path):
            result = runner.invoke(cli, ["run", "--workflow", wf_path, "--event", "issue_comment"])
        assert result.exit_code == 0
        assert "nothing to run" in result.output


class TestDue:

    def test_due(self, runner, tmp_path):
        with runner.isolated_filesystem(temp_dir=tmp_path):
            result = runner.invoke(cli, ["due", "--at", "2024-01-02T00:00:00"])
        assert result.exit_code == 0
        assert "due (0 0 * * */2)" in result.output

    def test_not_due(self, runner, tmp_path):
        with runner.isolated_filesystem(temp_dir=tmp_path):
            result = runner.invoke(cli, ["due", "--at", "2024-01-01T00:00:00"])
        assert result.exit_code == 1
        assert "not due" in result.output
