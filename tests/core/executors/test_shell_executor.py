# tests/core/executors/test_shell_executor.py
"""
Testes do executor de Steps shell.

Os testes asseguram que:
- o comando roda no shell do host (`&&`, redirecionamento, stderr)
- status SUCCESS se e somente se o exit code for 0
- stdout e stderr são combinados na saída do Step
- outputs estruturados são lidos do arquivo `STEPLINE_OUTPUT`
- timeout e cancelamento encerram o processo e produzem FAILURE

Limites explícitos:
    - Não resolve expressões (o Engine entrega o comando resolvido)
    - Não grava logs em disco
"""

import asyncio
import os
import sys
import time
from pathlib import Path

import pytest

from stepline.core.errors import STEP_CANCELLED, STEP_EXIT_CODE, STEP_TIMEOUT
from stepline.core.executors import ShellExecutor, parse_output_file
from stepline.core.pipeline.step import StepInvocation
from stepline.core.pipeline.types import StepSpec, StepStatus

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="requires a POSIX shell")


def _invocation(tmp_path: Path, command: str, **overrides) -> StepInvocation:
    env = dict(os.environ)
    env["STEPLINE"] = "true"
    fields = {
        "spec": StepSpec(run=command, id=overrides.pop("step_id", "sh")),
        "step_count": 1,
        "log_path": str(tmp_path / "step-1.log"),
        "command": command,
        "env": env,
    }
    fields.update(overrides)
    return StepInvocation(**fields)


def _execute(invocation, cancel_event=None):
    return asyncio.run(ShellExecutor().execute(invocation, cancel_event=cancel_event))


def test_compound_command_succeeds(tmp_path: Path):
    outcome = _execute(_invocation(tmp_path, "echo hello && echo world"))

    record = outcome.record
    assert record.status == StepStatus.SUCCESS
    assert record.exit_code == 0
    assert record.step_count == 1
    assert record.id == "sh"
    assert record.log_path == str(tmp_path / "step-1.log")
    assert outcome.output == "hello\nworld\n"


def test_redirection_writes_file_in_cwd(tmp_path: Path):
    outcome = _execute(_invocation(tmp_path, "echo 'some text' > out.txt", cwd=str(tmp_path)))

    assert outcome.record.status == StepStatus.SUCCESS
    assert (tmp_path / "out.txt").read_text() == "some text\n"


def test_non_zero_exit_is_failure(tmp_path: Path):
    outcome = _execute(_invocation(tmp_path, "echo before; exit 3"))

    record = outcome.record
    assert record.status == StepStatus.FAILURE
    assert record.exit_code == 3
    assert record.error["type"] == STEP_EXIT_CODE
    assert record.error["details"]["exit_code"] == 3
    assert outcome.output == "before\n"


def test_stderr_is_combined_with_stdout(tmp_path: Path):
    outcome = _execute(_invocation(tmp_path, "echo out; echo err 1>&2"))

    assert "out" in outcome.output
    assert "err" in outcome.output


def test_child_env_is_exactly_invocation_env(tmp_path: Path):
    outcome = _execute(_invocation(tmp_path, 'echo "marker=$STEPLINE"'))

    assert outcome.output == "marker=true\n"


def test_structured_outputs_from_output_file(tmp_path: Path):
    output_path = tmp_path / "logs" / "step-1.outputs"
    invocation = _invocation(
        tmp_path,
        'echo "version=1.2.3" >> "$STEPLINE_OUTPUT" && echo "url=http://x?a=b" >> "$STEPLINE_OUTPUT"',
        output_path=str(output_path),
    )
    invocation.env["STEPLINE_OUTPUT"] = str(output_path)

    outcome = _execute(invocation)

    assert outcome.record.status == StepStatus.SUCCESS
    assert outcome.record.outputs == {"version": "1.2.3", "url": "http://x?a=b"}


def test_parse_output_file_ignores_malformed_lines(tmp_path: Path):
    path = tmp_path / "outputs"
    path.write_text("a=1\nnot a pair\n=orphan\n b = 2\n")

    assert parse_output_file(str(path)) == {"a": "1", "b": " 2"}
    assert parse_output_file(str(tmp_path / "absent")) == {}
    assert parse_output_file(None) == {}


def test_timeout_kills_process(tmp_path: Path):
    started = time.monotonic()
    outcome = _execute(_invocation(tmp_path, "sleep 10", timeout=0.2))

    assert time.monotonic() - started < 5
    assert outcome.record.status == StepStatus.FAILURE
    assert outcome.record.error["type"] == STEP_TIMEOUT
    assert outcome.record.error["details"]["reason"] == "timeout"


def test_cancel_event_aborts_running_command(tmp_path: Path):
    async def scenario():
        event = asyncio.Event()
        asyncio.get_running_loop().call_later(0.2, event.set)
        return await ShellExecutor().execute(_invocation(tmp_path, "sleep 10"), cancel_event=event)

    started = time.monotonic()
    outcome = asyncio.run(scenario())

    assert time.monotonic() - started < 5
    assert outcome.record.status == StepStatus.FAILURE
    assert outcome.record.error["type"] == STEP_CANCELLED
    assert outcome.record.error["details"]["reason"] == "cancelled"


def test_already_cancelled_never_spawns(tmp_path: Path):
    async def scenario():
        event = asyncio.Event()
        event.set()
        invocation = _invocation(tmp_path, "touch spawned", cwd=str(tmp_path))
        return await ShellExecutor().execute(invocation, cancel_event=event)

    outcome = asyncio.run(scenario())

    assert outcome.record.error["type"] == STEP_CANCELLED
    assert not (tmp_path / "spawned").exists()
