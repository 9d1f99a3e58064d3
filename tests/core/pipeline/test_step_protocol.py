# tests/core/pipeline/test_step_protocol.py
"""
Testes dos contratos de execução (StepExecutor e Plugin).

Os contratos são Protocols `runtime_checkable`: qualquer objeto com a
forma esperada é aceito, sem herança.
"""

import asyncio

from stepline.core.executors import PluginExecutor, ShellExecutor
from stepline.core.pipeline.step import Plugin, StepExecutor, StepInvocation, StepOutcome
from stepline.core.pipeline.types import StepKind, StepRecord, StepSpec, StepStatus


class EchoExecutor:
    """Executor mínimo via duck typing: sucesso com o comando como output."""

    kind = StepKind.RUN

    async def execute(self, invocation, *, cancel_event=None):
        record = StepRecord(
            step_count=invocation.step_count,
            id=invocation.spec.id,
            status=StepStatus.SUCCESS,
            kind=self.kind,
            outputs={"command": invocation.command},
            log_path=invocation.log_path,
        )
        return StepOutcome(record=record, output=invocation.command or "")


def test_builtin_executors_satisfy_protocol():
    assert isinstance(ShellExecutor(), StepExecutor)
    assert isinstance(PluginExecutor(), StepExecutor)
    assert ShellExecutor.kind == StepKind.RUN
    assert PluginExecutor.kind == StepKind.PLUGIN


def test_duck_typed_executor_satisfies_protocol():
    executor = EchoExecutor()
    invocation = StepInvocation(spec=StepSpec(run="echo", id="e"), step_count=1, log_path="x.log", command="echo")

    outcome = asyncio.run(executor.execute(invocation))

    assert isinstance(executor, StepExecutor)
    assert outcome.record.outputs == {"command": "echo"}


def test_invocation_label_falls_back_to_position():
    invocation = StepInvocation(spec=StepSpec(run="echo"), step_count=3, log_path="x.log")

    assert invocation.label == "step-3"


def test_plain_function_satisfies_plugin_protocol():
    def run(inputs, context):
        return {}

    assert isinstance(run, Plugin)
