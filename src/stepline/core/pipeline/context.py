# src/stepline/core/pipeline/context.py
"""
Contexto de execução de uma run do Stepline.

Este módulo define o `RunContext`, o estado mutável canônico de uma run:
registros de Steps acumulados, status corrente e o escopo de variáveis
derivado do ambiente, dos inputs globais e dos outputs de Steps já
concluídos.

O RunContext atua como o único meio permitido de:
    - expor outputs de um Step às expressões de Steps posteriores
    - registrar logs estruturados de execução
    - coletar warnings não fatais (ex.: falha ao gravar log)

Princípios fundamentais:
    - Isolamento por execução (cada run possui seu próprio contexto)
    - Nenhum Step enxerga dados de um Step posterior
    - O snapshot nunca reflete um Step parcialmente concluído
    - Após `finish()` o contexto é imutável

Ciclo de vida:
    initialize → (begin_step → complete_step)* → skip_step* → finish

Invariantes:
    - `step_count` cresce exatamente 1 por Step executado e nunca é reutilizado
    - `status == FAILURE` se e somente se algum StepRecord falhou sem
      `continue_on_error`
    - Outputs são indexados por `id` e nunca mesclados entre Steps
    - Logs sempre incluem `run_id`

Limites explícitos:
    - Não executa Steps
    - Não resolve expressões
    - Não persiste dados
"""

from __future__ import annotations

import os
import uuid
from copy import deepcopy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from stepline.core.constants import STEPLINE_KEY, STEPLINE_VALUE

from .types import RunConfig, RunStatus, StepRecord, StepSpec, StepStatus


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, list):
        return [_freeze(v) for v in value]
    return value


class ContextStateError(RuntimeError):
    """Operação fora da ordem do ciclo de vida do RunContext."""


@dataclass
class RunContext:
    """
    Estado mutável de uma run.

    Campos canônicos:
    - run_id: identificador único da execução
    - created_at: timestamp UTC de criação do contexto
    - config: RunConfig da run
    - meta: metadados livres (ex.: diretório de logs, origem do trigger)
    - status: estado corrente da run
    - step_count: posição do último Step executado
    - steps: StepRecords em ordem de execução
    - events: log estruturado de eventos
    - warnings: warnings por chave de Step
    """

    run_id: str
    created_at: datetime
    config: RunConfig
    meta: Dict[str, Any] = field(default_factory=dict)

    status: RunStatus = field(default=RunStatus.PENDING, init=False)
    step_count: int = field(default=0, init=False)
    steps: List[StepRecord] = field(default_factory=list, init=False)
    events: List[Dict[str, Any]] = field(default_factory=list, init=False)
    warnings: Dict[str, List[str]] = field(default_factory=dict, init=False)

    _step_vars: Dict[str, Dict[str, Any]] = field(default_factory=dict, init=False, repr=False)
    _pending: Optional[Tuple[int, StepSpec]] = field(default=None, init=False, repr=False)
    _finished: bool = field(default=False, init=False, repr=False)

    @classmethod
    def initialize(
        cls,
        config: RunConfig,
        *,
        run_id: Optional[str] = None,
        meta: Optional[Dict[str, Any]] = None,
    ) -> "RunContext":
        """Cria o contexto da run: status PENDING, step_count 0, sem registros."""
        return cls(
            run_id=run_id or uuid.uuid4().hex,
            created_at=datetime.now(timezone.utc),
            config=config,
            meta=dict(meta or {}),
        )

    @property
    def finished(self) -> bool:
        return self._finished

    def _ensure_open(self) -> None:
        if self._finished:
            raise ContextStateError(f"RunContext {self.run_id} is finished")

    # -----------------------------
    # Ciclo de Steps
    # -----------------------------
    def begin_step(self, spec: StepSpec) -> int:
        """Reserva a próxima posição para `spec` e retorna o novo `step_count`."""
        self._ensure_open()
        if self._pending is not None:
            raise ContextStateError("begin_step called while another step is in progress")

        self.step_count += 1
        self._pending = (self.step_count, spec)
        if self.status == RunStatus.PENDING:
            self.status = RunStatus.RUNNING
        return self.step_count

    def complete_step(self, record: StepRecord) -> None:
        """
        Registra o resultado do Step reservado por `begin_step`.

        Os outputs passam a ser visíveis em `steps.<id>` somente após esta
        chamada, de uma só vez.
        """
        self._ensure_open()
        if self._pending is None or self._pending[0] != record.step_count:
            raise ContextStateError(
                f"complete_step for step {record.step_count} without matching begin_step"
            )

        self.steps.append(record)
        if record.id:
            self._step_vars[record.id] = {
                "outputs": deepcopy(record.outputs),
                "status": record.status.value,
            }
        if record.is_fatal:
            self.status = RunStatus.FAILURE
        self._pending = None

    def skip_step(self, spec: StepSpec, *, position: int) -> StepRecord:
        """Registra um Step não executado. Não altera `step_count`."""
        self._ensure_open()
        record = StepRecord(
            step_count=position,
            id=spec.id,
            status=StepStatus.SKIPPED,
            kind=spec.kind,
            name=spec.name,
            continue_on_error=spec.continue_on_error,
        )
        self.steps.append(record)
        return record

    def finish(self) -> RunStatus:
        """Fecha a run com SUCCESS ou FAILURE; o contexto torna-se imutável."""
        self._ensure_open()
        if self._pending is not None:
            raise ContextStateError("finish called while a step is in progress")

        failed = any(r.is_fatal for r in self.steps)
        self.status = RunStatus.FAILURE if failed else RunStatus.SUCCESS
        self._finished = True
        return self.status

    # -----------------------------
    # Escopo de variáveis
    # -----------------------------
    def variables(self, env: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
        """
        Monta o escopo de variáveis corrente.

        Precedência de `env`: ambiente do host < env global < `env`
        informado (env do Step) < marcador do engine. Inputs globais são
        expostos em `inputs.*` e também no nível raiz, sem sobrescrever
        `env`, `inputs` e `steps`.
        """
        merged_env: Dict[str, str] = dict(os.environ)
        merged_env.update(self.config.env)
        merged_env.update(env or {})
        merged_env[STEPLINE_KEY] = STEPLINE_VALUE

        scope: Dict[str, Any] = dict(self.config.inputs)
        scope["inputs"] = dict(self.config.inputs)
        scope["env"] = merged_env
        scope["steps"] = self._step_vars
        return scope

    def snapshot(self, env: Optional[Mapping[str, str]] = None) -> Mapping[str, Any]:
        """
        Retorna uma visão somente-leitura e desacoplada do escopo corrente.

        Mutações posteriores do contexto não afetam snapshots já emitidos.
        """
        return _freeze(deepcopy(self.variables(env)))

    def get_step(self, step_id: str) -> StepRecord:
        for record in self.steps:
            if record.id == step_id:
                return record
        raise KeyError(step_id)

    # -----------------------------
    # Logging & warnings
    # -----------------------------
    def log(self, *, step_id: Optional[str], level: str, message: str, **extra: Any) -> None:
        event = {
            "run_id": self.run_id,
            "step_id": step_id,
            "level": level,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update(extra)
        self.events.append(event)

    def add_warning(self, *, step_id: str, message: str) -> None:
        if step_id not in self.warnings:
            self.warnings[step_id] = []
        self.warnings[step_id].append(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "created_at": self.created_at.isoformat(),
            "status": self.status.value,
            "step_count": self.step_count,
            "steps": [r.to_dict() for r in self.steps],
            "warnings": {k: list(v) for k, v in self.warnings.items()},
        }


def step_key(spec_or_record: Any, position: int) -> str:
    """Chave estável para logs/warnings: `id` quando houver, senão `step-<n>`."""
    sid = getattr(spec_or_record, "id", None)
    return sid if sid else f"step-{position}"


__all__ = ["ContextStateError", "RunContext", "step_key"]
