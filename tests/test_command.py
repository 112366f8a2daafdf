import threading
import time

import pytest

from tic80_manager.lib.command import CommandError, run_cmd, shell_argv
from tic80_manager.plan import Step
from tic80_manager.runner import CommandRunner


def test_shell_argv_passes_string_through():
    assert shell_argv("cd /tmp && make -j$(nproc)") == ["bash", "-c", "cd /tmp && make -j$(nproc)"]


def test_run_cmd_merges_stderr_into_output():
    r = run_cmd(shell_argv("echo out; echo err >&2"), check=False)
    assert r.returncode == 0
    assert "out" in r.output
    assert "err" in r.output


def test_run_cmd_check_raises():
    with pytest.raises(CommandError) as exc:
        run_cmd(shell_argv("echo nope; exit 3"))
    assert exc.value.result.returncode == 3
    assert "nope" in str(exc.value)


def test_run_cmd_dry_run_executes_nothing(tmp_path):
    marker = tmp_path / "marker"
    r = run_cmd(shell_argv(f"touch {marker}"), dry_run=True)
    assert r.returncode == 0
    assert r.output == ""
    assert not marker.exists()


def test_run_cmd_inherits_caller_environment_and_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("TIC80_MANAGER_TEST", "inherited")
    r = run_cmd(shell_argv("echo $TIC80_MANAGER_TEST; pwd -P"))
    assert r.output.splitlines() == ["inherited", str(tmp_path.resolve())]


def test_runner_success():
    outcome = CommandRunner().run(Step("Saying hi...", "echo hi"))
    assert not outcome.failed
    assert outcome.output.strip() == "hi"
    assert outcome.diagnostic == ""


def test_runner_failure_diagnostic_names_the_step():
    outcome = CommandRunner().run(Step("Compiling...", "echo 'error: missing header' >&2; exit 2"))
    assert outcome.failed
    assert outcome.diagnostic.splitlines()[0] == "Compiling... failed (exit status 2)"
    assert "error: missing header" in outcome.diagnostic
    assert "error: missing header" in outcome.output


def test_runner_spawn_failure(monkeypatch):
    monkeypatch.setattr("tic80_manager.runner.shell_argv", lambda command: ["/nonexistent/tic80-shell", command])
    runner = CommandRunner()
    outcome = runner.run(Step("Cloning Repository...", "git clone x"))
    assert outcome.failed
    assert outcome.diagnostic.startswith("Cloning Repository... could not be started")
    assert not runner.busy


def test_runner_dry_run():
    outcome = CommandRunner(dry_run=True).run(Step("Failing...", "exit 1"))
    assert not outcome.failed


def test_terminate_when_idle_is_a_noop():
    runner = CommandRunner()
    runner.terminate()
    assert not runner.busy


def test_terminate_stops_the_running_step():
    runner = CommandRunner()
    results = []
    t = threading.Thread(target=lambda: results.append(runner.run(Step("Sleeping...", "sleep 30"))))
    t.start()
    deadline = time.monotonic() + 5
    while not runner.busy and time.monotonic() < deadline:
        time.sleep(0.01)
    assert runner.busy

    runner.terminate()
    t.join(timeout=5)
    assert not t.is_alive()
    assert results[0].failed
    assert not runner.busy
