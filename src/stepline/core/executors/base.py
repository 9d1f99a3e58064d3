# src/stepline/core/executors/base.py
"""
Infraestrutura comum aos executores de Steps.

Responsabilidades:
    - Encerrar uma execução por cancelamento ou timeout (`guard`)
    - Converter exceções em StepErrorPayload (mesma política para shell e plugin)
    - Construir StepRecords de falha com `step_count`, `id` e `log_path` preenchidos

Decisões arquiteturais:
    - A corrotina do Step roda em uma task própria; o cancelamento da task
      é o único mecanismo de interrupção (o executor shell mata o processo
      ao receber `CancelledError`)
    - Exceções de execução nunca escapam dos executores
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Dict, Optional

from stepline.core.errors import (
    PLUGIN_CONTRACT_ERROR,
    PLUGIN_NOT_FOUND,
    StepErrorPayload,
    step_cancelled,
    step_execution_error,
    step_timeout,
)
from stepline.core.exceptions import (
    PluginContractError,
    PluginExited,
    PluginNotFound,
    StepCancelled,
    StepException,
    StepTimeout,
)
from stepline.core.pipeline.step import StepInvocation
from stepline.core.pipeline.types import StepRecord, StepStatus


async def guard(
    awaitable: Awaitable[Any],
    *,
    label: str,
    timeout: Optional[float] = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> Any:
    """
    Aguarda `awaitable` respeitando timeout e sinal de cancelamento.

    Raises:
        StepCancelled: Se `cancel_event` foi sinalizado antes do término.
        StepTimeout: Se `timeout` expirou antes do término.
    """
    if cancel_event is not None and cancel_event.is_set():
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        raise StepCancelled(message="cancelled", details={"step": label, "reason": "cancelled"})

    task = asyncio.ensure_future(awaitable)
    waiters = {task}
    cancel_waiter: Optional[asyncio.Future] = None
    if cancel_event is not None:
        cancel_waiter = asyncio.ensure_future(cancel_event.wait())
        waiters.add(cancel_waiter)

    try:
        done, _ = await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
    except BaseException:
        # a task do Step nunca sobrevive a `guard`
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        raise
    finally:
        if cancel_waiter is not None:
            cancel_waiter.cancel()

    if task in done:
        return task.result()

    task.cancel()
    await asyncio.gather(task, return_exceptions=True)

    if cancel_event is not None and cancel_event.is_set():
        raise StepCancelled(message="cancelled", details={"step": label, "reason": "cancelled"})
    raise StepTimeout(
        message=f"timeout after {timeout}s",
        details={"step": label, "reason": "timeout", "timeout": timeout},
    )


def exception_to_error(exc: BaseException, *, label: str, timeout: Optional[float] = None) -> StepErrorPayload:
    """Converte exceções em StepErrorPayload (serializável, acionável)."""
    if isinstance(exc, StepCancelled):
        return step_cancelled(step=label)
    if isinstance(exc, StepTimeout):
        return step_timeout(step=label, timeout=float(timeout or exc.details.get("timeout") or 0))
    if isinstance(exc, (PluginNotFound, PluginContractError)):
        return StepErrorPayload(
            type=PLUGIN_NOT_FOUND if isinstance(exc, PluginNotFound) else PLUGIN_CONTRACT_ERROR,
            message=exc.message,
            details={"step": label, **dict(exc.details or {})},
            hint=exc.hint,
        )
    if isinstance(exc, PluginExited):
        return step_execution_error(
            step=label,
            exc_type="SystemExit",
            exc_message=exc.message,
            exit_code=exc.details.get("exit_code"),
            hint=exc.hint or "",
        )
    if isinstance(exc, SystemExit):
        return step_execution_error(
            step=label,
            exc_type="SystemExit",
            exc_message=f"sys.exit({exc.code!r})",
            exit_code=exc.code,
        )
    if isinstance(exc, StepException):
        return StepErrorPayload(
            type=exc.__class__.__name__,
            message=exc.message,
            details={"step": label, **dict(exc.details or {})},
            hint=exc.hint,
        )
    return step_execution_error(
        step=label,
        exc_type=exc.__class__.__name__,
        exc_message=str(exc) or None,
    )


def elapsed_ms(started: float) -> int:
    return max(0, int((time.monotonic() - started) * 1000))


def failure_record(
    invocation: StepInvocation,
    error: StepErrorPayload,
    *,
    started: float,
    exit_code: Optional[int] = None,
    outputs: Optional[Dict[str, Any]] = None,
) -> StepRecord:
    spec = invocation.spec
    return StepRecord(
        step_count=invocation.step_count,
        id=spec.id,
        status=StepStatus.FAILURE,
        kind=spec.kind,
        name=spec.name,
        outputs=dict(outputs or {}),
        log_path=invocation.log_path,
        exit_code=exit_code,
        error=error.to_dict(),
        continue_on_error=spec.continue_on_error,
        duration_ms=elapsed_ms(started),
    )


def success_record(
    invocation: StepInvocation,
    *,
    started: float,
    outputs: Optional[Dict[str, Any]] = None,
    exit_code: Optional[int] = None,
) -> StepRecord:
    spec = invocation.spec
    return StepRecord(
        step_count=invocation.step_count,
        id=spec.id,
        status=StepStatus.SUCCESS,
        kind=spec.kind,
        name=spec.name,
        outputs=dict(outputs or {}),
        log_path=invocation.log_path,
        exit_code=exit_code,
        continue_on_error=spec.continue_on_error,
        duration_ms=elapsed_ms(started),
    )
