# src/stepline/core/executors/plugin.py
"""
Executor de Steps plugin (`plugin`).

Carrega o plugin via `PluginLoader`, invoca `run(inputs, context)` e usa
o valor retornado como `outputs` do Step.

Política de execução:
    - `async def run` é aguardado no event loop da run
    - `def run` síncrono roda em thread (`asyncio.to_thread`) para que
      timeout e cancelamento continuem efetivos
    - retorno None → outputs vazios; mapa → outputs; outro tipo → FAILURE
    - exceção levantada (ou awaitable rejeitado) → FAILURE
    - `sys.exit()` no import ou na execução → FAILURE com o código de saída
    - outputs que não podem ser copiados → FAILURE (contrato do plugin)

Saída de log:
    Registro textual da invocação, outputs serializados ou traceback.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import time
import traceback
from collections.abc import Mapping
from copy import deepcopy
from typing import Any, Dict, Optional

from stepline.core.exceptions import PluginContractError, PluginExited
from stepline.core.expressions.resolver import thaw
from stepline.core.pipeline.step import StepInvocation, StepOutcome
from stepline.core.pipeline.types import StepKind

from .base import exception_to_error, failure_record, guard, success_record
from .loader import PluginCallable, PluginLoader


def _as_outputs(result: Any, ref: str) -> Dict[str, Any]:
    if result is None:
        return {}
    if isinstance(result, Mapping):
        # outputs ficam no RunContext e no relatório: precisam ser copiáveis
        try:
            return deepcopy(thaw(result))
        except Exception as exc:
            raise PluginContractError(
                message=f"Plugin '{ref}' returned outputs that cannot be copied: {exc}",
                details={"plugin": ref, "received": type(exc).__name__},
                hint="Retorne apenas dados (dicts, listas, textos, números) em `outputs`.",
            ) from exc
    raise PluginContractError(
        message=f"Plugin '{ref}' must return a mapping, got {type(result).__name__}",
        details={"plugin": ref, "received": type(result).__name__},
        hint="Retorne um dict (ou None) de `run(inputs, context)`.",
    )


def _exited(exc: SystemExit, ref: str) -> PluginExited:
    return PluginExited(
        message=f"Plugin '{ref}' called sys.exit({exc.code!r})",
        details={"plugin": ref, "exit_code": exc.code},
        hint="Levante uma exceção ou retorne normalmente em vez de encerrar o processo.",
    )


def _render_outputs(outputs: Dict[str, Any]) -> str:
    try:
        return json.dumps(outputs, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return repr(outputs)


class PluginExecutor:
    """Executor da variante `plugin` de Steps."""

    kind = StepKind.PLUGIN

    def __init__(self, loader: Optional[PluginLoader] = None):
        self.loader = loader if loader is not None else PluginLoader()

    async def _invoke(self, fn: PluginCallable, ref: str, inputs: Any, context: Any) -> Any:
        # SystemExit não pode atravessar a task criada por `guard`: o event loop o relançaria
        try:
            if inspect.iscoroutinefunction(fn):
                result = await fn(inputs, context)
            else:
                result = await asyncio.to_thread(fn, inputs, context)
            if inspect.isawaitable(result):
                result = await result
        except SystemExit as exc:
            raise _exited(exc, ref) from None
        return result

    async def execute(
        self,
        invocation: StepInvocation,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> StepOutcome:
        started = time.monotonic()
        ref = invocation.spec.plugin or ""
        lines = [f"plugin: {ref}"]
        inputs = invocation.inputs if invocation.inputs is not None else {}

        try:
            fn = self.loader.load(ref, base_dir=invocation.cwd)
            result = await guard(
                self._invoke(fn, ref, inputs, invocation.context),
                label=invocation.label,
                timeout=invocation.timeout,
                cancel_event=cancel_event,
            )
            outputs = _as_outputs(result, ref)
        except SystemExit as exc:
            # `sys.exit()` no import do módulo do plugin
            exited = _exited(exc, ref)
            lines.append(exited.message)
            error = exception_to_error(exited, label=invocation.label)
            record = failure_record(invocation, error, started=started)
            return StepOutcome(record=record, output="\n".join(lines) + "\n")
        except Exception as exc:
            lines.append("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)).rstrip())
            error = exception_to_error(exc, label=invocation.label, timeout=invocation.timeout)
            record = failure_record(invocation, error, started=started)
            return StepOutcome(record=record, output="\n".join(lines) + "\n")

        lines.append("outputs: " + _render_outputs(outputs))
        record = success_record(invocation, started=started, outputs=outputs)
        return StepOutcome(record=record, output="\n".join(lines) + "\n")
