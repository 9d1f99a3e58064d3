# tests/core/engine/test_engine_run.py
"""
Testes do caminho feliz do Engine.

Este módulo valida a execução sequencial de uma run completa:
- expressões `${{ }}` resolvidas contra env, inputs e outputs anteriores
- comandos shell compostos (`&&`, `>`)
- outputs de plugins e de Steps shell (`STEPLINE_OUTPUT`) visíveis aos Steps seguintes
- marcador `STEPLINE=true` visível aos processos filhos e ausente do host
- artefatos de log e relatório final em `<log_prefix>/<run_id>/`

Invariantes:
    - status SUCCESS se e somente se todos os Steps tiveram sucesso
    - `step_count` final é a posição do último Step executado
"""

import asyncio
import os
import sys
from pathlib import Path

import pytest

from stepline import Engine, RunStatus, StepStatus
from stepline.core.traceability import load_report

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="requires a POSIX shell")


def _log(record) -> str:
    return Path(record.log_path).read_text(encoding="utf-8")


def test_env_expression_from_step_env(make_config, run_pipeline):
    ctx = run_pipeline(make_config([{"run": "echo ${{env.name}}", "env": {"name": "xiaoming"}}]))

    assert ctx.status == RunStatus.SUCCESS
    assert _log(ctx.steps[0]) == "xiaoming\n"


def test_plugin_outputs_feed_later_steps(make_config, run_pipeline, plugins_dir):
    """
    Verifica `${{steps.xuse.outputs.success}}`.

    O plugin de pacote `app` devolve `{"success": True}`; o Step seguinte
    recebe o valor convertido para texto (`true`) no comando.
    """
    ctx = run_pipeline(
        make_config(
            [
                {"plugin": str(plugins_dir / "app"), "id": "xuse", "inputs": {"milliseconds": 10}},
                {"run": "echo ${{steps.xuse.outputs.success}}"},
            ]
        )
    )

    assert ctx.status == RunStatus.SUCCESS
    assert ctx.step_count == 2
    assert ctx.get_step("xuse").outputs == {"success": True}
    assert _log(ctx.steps[1]) == "true\n"


def test_compound_and_command(make_config, run_pipeline):
    ctx = run_pipeline(make_config([{"run": "echo aa && echo bb"}]))

    assert ctx.status == RunStatus.SUCCESS
    assert _log(ctx.steps[0]) == "aa\nbb\n"


def test_redirection_command(make_config, run_pipeline, tmp_path):
    target = tmp_path / "pipe.txt"
    ctx = run_pipeline(make_config([{"run": f"echo aa > {target}"}]))

    assert ctx.status == RunStatus.SUCCESS
    assert target.read_text() == "aa\n"


def test_marker_visible_to_children_but_not_host(make_config, run_pipeline, monkeypatch):
    monkeypatch.delenv("STEPLINE", raising=False)

    ctx = run_pipeline(make_config([{"run": 'echo "$STEPLINE"'}]))

    assert _log(ctx.steps[0]) == "true\n"
    assert "STEPLINE" not in os.environ


def test_shell_outputs_via_output_file(make_config, run_pipeline):
    ctx = run_pipeline(
        make_config(
            [
                {"id": "meta", "run": 'echo "tag=v1.0" >> "$STEPLINE_OUTPUT"'},
                {"run": "echo released ${{ steps.meta.outputs.tag }}"},
            ]
        )
    )

    assert ctx.get_step("meta").outputs == {"tag": "v1.0"}
    assert _log(ctx.steps[1]) == "released v1.0\n"


def test_global_inputs_and_env_precedence(make_config, run_pipeline):
    ctx = run_pipeline(
        make_config(
            [
                {"run": 'echo "${{ inputs.greeting }} ${{ greeting }} $STAGE"'},
                {"run": 'echo "$STAGE"', "env": {"STAGE": "step"}},
            ],
            env={"STAGE": "global"},
            inputs={"greeting": "hello"},
        )
    )

    assert _log(ctx.steps[0]) == "hello hello global\n"
    assert _log(ctx.steps[1]) == "step\n"


def test_step_env_values_can_reference_previous_outputs(make_config, run_pipeline, plugins_dir):
    ctx = run_pipeline(
        make_config(
            [
                {"plugin": str(plugins_dir / "app"), "id": "xuse", "inputs": {"milliseconds": 0}},
                {"run": 'echo "ok=$OK"', "env": {"OK": "${{ steps.xuse.outputs.success }}"}},
            ]
        )
    )

    assert _log(ctx.steps[1]) == "ok=true\n"


def test_plugin_inputs_resolved_natively(make_config, run_pipeline, plugins_dir):
    ctx = run_pipeline(
        make_config(
            [
                {"plugin": str(plugins_dir / "app"), "id": "xuse", "inputs": {"milliseconds": 0}},
                {
                    "plugin": str(plugins_dir / "echo.py"),
                    "id": "echo",
                    "inputs": {"flag": "${{ steps.xuse.outputs.success }}", "items": ["${{ inputs.n }}"]},
                },
            ],
            inputs={"n": 3},
        )
    )

    outputs = ctx.get_step("echo").outputs
    assert outputs["inputs"] == {"flag": True, "items": [3]}
    assert outputs["marker"] == "true"
    assert outputs["seen_steps"] == ["xuse"]


def test_log_artifacts_and_report(make_config, log_prefix):
    """
    Verifica a organização dos artefatos em disco.

    Cada Step grava `<log_prefix>/<run_id>/step-<n>.log`; ao final o
    relatório `report.json` consolida status, hash e Event Log.
    """
    engine = Engine(make_config([{"run": "echo one", "id": "one"}, {"run": "echo two"}]), run_id="run-42")
    ctx = asyncio.run(engine.start())

    run_dir = Path(log_prefix) / "run-42"
    assert ctx.meta["log_dir"] == str(run_dir)
    assert [r.log_path for r in ctx.steps] == [str(run_dir / "step-1.log"), str(run_dir / "step-2.log")]

    report = load_report(run_dir / "report.json")
    assert report.run["status"] == "success"
    assert report.run["step_total"] == 2
    assert len(report.inputs["config_hash"]) == 64
    assert report.steps["1"]["id"] == "one"
    assert report.steps["2"]["status"] == "success"
    assert [e["event_type"] for e in report.events] == [
        "run_started",
        "step_started",
        "step_finished",
        "step_started",
        "step_finished",
        "run_finished",
    ]
    assert [r.status for r in ctx.steps] == [StepStatus.SUCCESS, StepStatus.SUCCESS]


def test_structured_events_carry_run_id(make_config, run_pipeline):
    ctx = run_pipeline(make_config([{"run": "true"}]), run_id="evt")

    messages = [e["message"] for e in ctx.events]
    assert messages == ["run started", "step started", "step finished", "run finished"]
    assert all(e["run_id"] == "evt" for e in ctx.events)
