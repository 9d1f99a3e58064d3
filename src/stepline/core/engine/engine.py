# src/stepline/core/engine/engine.py
"""
Engine de execução do pipeline do Stepline.

Máquina de estados da run: PENDING → RUNNING → {SUCCESS, FAILURE}.

Para cada Step, na ordem declarada:
    1. reserva a posição no RunContext (`begin_step`)
    2. resolve `env`, `run` e `inputs` contra o snapshot corrente
    3. despacha para o executor da variante (shell ou plugin)
    4. registra o StepRecord no RunContext (`complete_step`)
    5. grava a saída do Step via Run Logger
    6. interrompe a run se o Step falhou sem `continue-on-error`

Steps posteriores a uma interrupção são registrados como SKIPPED.

Guardrails:
- `Engine.start()` nunca levanta exceção por falha de Step: qualquer
  exceção inesperada (inclusive `SystemExit`) é convertida em
  StepErrorPayload no StepRecord.
- Erros de configuração (template, Steps inválidos, ids duplicados,
  referências adiantadas) são levantados no construtor, antes da run.
- Falhas de log viram warnings no RunContext; nunca alteram status.
- O marcador `STEPLINE=true` é injetado apenas no ambiente de cada
  processo filho e no snapshot entregue aos plugins; `os.environ` do host
  nunca é alterado, portanto runs concorrentes não interferem entre si.
"""

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone
from typing import Any, Awaitable, Dict, Mapping, Optional, Union

from stepline.core.config.hashing import compute_config_hash
from stepline.core.config.loader import PathLike, get_yaml_content
from stepline.core.constants import OUTPUT_ENV_KEY
from stepline.core.executors.base import exception_to_error, failure_record
from stepline.core.executors.loader import PluginLoader, PluginRegistry
from stepline.core.executors.plugin import PluginExecutor
from stepline.core.executors.shell import ShellExecutor
from stepline.core.expressions.resolver import resolve, stringify, thaw
from stepline.core.pipeline.context import ContextStateError, RunContext, step_key
from stepline.core.pipeline.step import StepExecutor, StepInvocation, StepOutcome
from stepline.core.pipeline.types import RunConfig, RunStatus, StepKind, StepRecord, StepSpec
from stepline.core.traceability.report import (
    RunReport,
    add_event,
    create_report,
    run_finished,
    step_finished,
    step_started,
)
from stepline.core.traceability.run_log import RunLogger

from .planner import plan_execution


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Engine:
    """Orquestrador canônico do Stepline (planner + loop sequencial)."""

    def __init__(
        self,
        config: Union[RunConfig, Mapping[str, Any]],
        *,
        run_id: Optional[str] = None,
        plugins: Optional[PluginRegistry] = None,
        executors: Optional[Mapping[StepKind, StepExecutor]] = None,
        meta: Optional[Dict[str, Any]] = None,
    ):
        self.config: RunConfig = config if isinstance(config, RunConfig) else RunConfig.from_dict(config)
        self.steps = plan_execution(self.config.steps)

        self.ctx: RunContext = RunContext.initialize(self.config, run_id=run_id, meta=meta)
        self.logger = RunLogger(self.config.log_config.log_prefix, self.ctx.run_id)
        self.ctx.meta.setdefault("log_dir", str(self.logger.run_dir))

        self.executors: Dict[StepKind, StepExecutor] = {
            StepKind.RUN: ShellExecutor(),
            StepKind.PLUGIN: PluginExecutor(PluginLoader(plugins)),
        }
        if executors:
            self.executors.update(executors)

        self.report: RunReport = create_report(
            run_id=self.ctx.run_id,
            started_at=self.ctx.created_at,
            config_hash=compute_config_hash(self.config.to_dict()),
            step_total=len(self.steps),
        )

        self._cancel_requested = False
        self._cancel_event: Optional[asyncio.Event] = None

    # ------------------------------------------------------------------
    # Controle
    # ------------------------------------------------------------------
    def cancel(self) -> None:
        """Solicita o cancelamento: o Step corrente é abortado e a run falha."""
        self._cancel_requested = True
        if self._cancel_event is not None:
            self._cancel_event.set()

    # ------------------------------------------------------------------
    # Observabilidade
    # ------------------------------------------------------------------
    def _warn(self, key: str, message: str, **extra: Any) -> None:
        self.ctx.add_warning(step_id=key, message=message)
        self.ctx.log(step_id=key, level="WARNING", message=message, **extra)

    # ------------------------------------------------------------------
    # Preparação de um Step
    # ------------------------------------------------------------------
    def _prepare(self, spec: StepSpec, step_count: int) -> StepInvocation:
        base_scope = self.ctx.snapshot()
        step_env = {k: stringify(v) for k, v in resolve(dict(spec.env), base_scope).items()}
        scope = self.ctx.snapshot(env=step_env)

        output_path: Optional[str] = None
        child_env: Dict[str, str] = dict(thaw(scope["env"]))
        if spec.kind == StepKind.RUN:
            output_path = str(self.logger.step_output_path(step_count))
            child_env[OUTPUT_ENV_KEY] = output_path

        timeout = spec.timeout if spec.timeout is not None else self.config.default_timeout

        return StepInvocation(
            spec=spec,
            step_count=step_count,
            log_path=str(self.logger.step_log_path(step_count)),
            env=child_env,
            context=scope,
            command=stringify(resolve(spec.run, scope)) if spec.run else None,
            inputs=resolve(spec.inputs, scope),
            output_path=output_path,
            timeout=timeout,
            cwd=self.config.cwd,
        )

    async def _execute(self, spec: StepSpec, step_count: int) -> StepOutcome:
        started = time.monotonic()
        invocation: Optional[StepInvocation] = None
        try:
            invocation = self._prepare(spec, step_count)
            executor = self.executors[spec.kind]
            outcome = await executor.execute(invocation, cancel_event=self._cancel_event)
            if not isinstance(outcome, StepOutcome):
                raise TypeError("StepExecutor.execute must return StepOutcome")
            return outcome
        except (Exception, SystemExit) as exc:
            if invocation is None:
                invocation = StepInvocation(
                    spec=spec,
                    step_count=step_count,
                    log_path=str(self.logger.step_log_path(step_count)),
                )
            error = exception_to_error(exc, label=invocation.label)
            record = failure_record(invocation, error, started=started)
            return StepOutcome(record=record, output=f"{error.type}: {error.message}\n")

    async def _run_step(self, spec: StepSpec) -> StepRecord:
        step_count = self.ctx.begin_step(spec)
        key = step_key(spec, step_count)
        step_started(self.report, step_count=step_count, step_id=spec.id, kind=spec.kind.value, ts=_now())
        self.ctx.log(step_id=key, level="INFO", message="step started", step_count=step_count, kind=spec.kind.value)

        outcome = await self._execute(spec, step_count)
        record = outcome.record

        self.ctx.complete_step(record)
        step_finished(self.report, record=record, ts=_now())

        log_error = self.logger.write(record, outcome.output)
        if log_error is not None:
            self._warn(key, log_error.message, error=log_error.to_dict())

        self.ctx.log(
            step_id=key,
            level="INFO" if not record.is_fatal else "ERROR",
            message="step finished",
            step_count=step_count,
            status=record.status.value,
        )
        return record

    # ------------------------------------------------------------------
    # Loop principal
    # ------------------------------------------------------------------
    async def start(self) -> RunContext:
        """
        Executa a run e retorna o RunContext final (imutável).

        Raises:
            ContextStateError: Se a mesma instância for iniciada duas vezes.
        """
        if self.ctx.status != RunStatus.PENDING or self._cancel_event is not None:
            raise ContextStateError("Engine.start may only be called once")

        self._cancel_event = asyncio.Event()
        if self._cancel_requested:
            self._cancel_event.set()

        add_event(self.report, event_type="run_started", ts=_now())
        self.ctx.log(step_id=None, level="INFO", message="run started", steps=len(self.steps))

        dir_error = self.logger.ensure_dir()
        if dir_error is not None:
            self._warn("run", dir_error.message, error=dir_error.to_dict())

        halted = False
        for position, spec in enumerate(self.steps, start=1):
            if halted:
                skipped = self.ctx.skip_step(spec, position=position)
                step_finished(self.report, record=skipped, ts=_now())
                continue

            record = await self._run_step(spec)
            if record.is_fatal:
                halted = True

        status = self.ctx.finish()
        self.ctx.log(step_id=None, level="INFO", message="run finished", status=status.value)
        run_finished(self.report, status=status.value, ts=_now(), warnings=self.ctx.warnings)

        report_error = self.logger.write_report(self.report.to_dict())
        if report_error is not None:
            # contexto já finalizado: apenas evento, sem warning
            self.ctx.log(step_id=None, level="WARNING", message=report_error.message, error=report_error.to_dict())
        return self.ctx


def start(config: Union[RunConfig, Mapping[str, Any]], **kwargs: Any) -> Awaitable[RunContext]:
    """
    Ponto de entrada funcional: `await start(config)`.

    A validação de configuração acontece de forma síncrona nesta chamada,
    antes que qualquer corrotina seja criada.
    """
    return Engine(config, **kwargs).start()


def run_template(
    path: Optional[PathLike] = None,
    *,
    local_path: Optional[PathLike] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    **kwargs: Any,
) -> RunContext:
    """
    Carrega o template YAML e executa a run até o fim (bloqueante).

    `overrides` é aplicado por cima do documento (nível raiz), útil para
    injetar `env`/`inputs` vindos de um trigger.
    """
    document: Dict[str, Any] = dict(get_yaml_content(path, local_path=local_path))
    document.update(overrides or {})
    return asyncio.run(start(document, **kwargs))


__all__ = ["Engine", "run_template", "start"]
