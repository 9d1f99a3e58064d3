# src/stepline/core/pipeline/step.py
"""
Contratos canônicos de execução de Steps do Stepline.

Este módulo define o protocolo formal que qualquer executor de Step deve
satisfazer, o contrato de plugins e as estruturas trocadas entre o Engine
e os executores.

Componentes:
    - StepInvocation → Step já resolvido, pronto para execução
    - StepOutcome    → StepRecord + saída bruta destinada ao Run Logger
    - StepExecutor   → capacidade "executar um Step resolvido"
    - Plugin         → entrada `run(inputs, context)` de um plugin

Princípios fundamentais:
    - Executores não conhecem o Engine nem o RunContext mutável
    - Executores recebem apenas dados resolvidos e um snapshot
    - Falhas de execução viram dados (StepRecord), nunca exceções
    - Conformidade é garantida por duck typing (@runtime_checkable)

Invariantes:
    - O StepRecord retornado sempre carrega `step_count`, `id` e `log_path`
    - Nenhum executor bloqueia indefinidamente (timeout/cancelamento)

Limites explícitos:
    - Não resolve expressões
    - Não decide políticas de continuidade da run
    - Não grava logs em disco
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Protocol, runtime_checkable

from .types import StepKind, StepRecord, StepSpec


@dataclass(frozen=True)
class StepInvocation:
    """
    Step resolvido entregue a um executor.

    Campos:
        - spec: StepSpec original (sem resolução)
        - step_count: posição reservada no RunContext
        - command: comando shell já resolvido (apenas RUN)
        - inputs: inputs já resolvidos (apenas PLUGIN)
        - env: ambiente completo do processo filho, marcador incluído
        - context: snapshot somente-leitura do escopo de variáveis
        - log_path: arquivo de log reservado para o Step
        - output_path: arquivo de outputs de Steps shell
        - timeout: limite em segundos (None → sem limite)
        - cwd: diretório de trabalho
    """
    spec: StepSpec
    step_count: int
    log_path: str
    env: Dict[str, str] = field(default_factory=dict)
    context: Mapping[str, Any] = field(default_factory=dict)
    command: Optional[str] = None
    inputs: Any = None
    output_path: Optional[str] = None
    timeout: Optional[float] = None
    cwd: Optional[str] = None

    @property
    def label(self) -> str:
        return self.spec.id or f"step-{self.step_count}"


@dataclass(frozen=True)
class StepOutcome:
    """Resultado de um executor: registro imutável e saída bruta combinada."""
    record: StepRecord
    output: str = ""


@runtime_checkable
class StepExecutor(Protocol):
    """
    Capacidade "executar um Step resolvido e produzir um StepRecord".

    Atributos obrigatórios:
        - kind: variante de Step atendida (`StepKind.RUN` ou `StepKind.PLUGIN`)

    Invariantes:
        - `execute` nunca levanta exceção por falha do Step
        - O cancelamento (`cancel_event`) e o timeout produzem FAILURE
    """
    kind: StepKind

    async def execute(
        self,
        invocation: StepInvocation,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> StepOutcome:
        """Executa o Step uma única vez."""
        ...


@runtime_checkable
class Plugin(Protocol):
    """
    Contrato de plugin: um callable `(inputs, context) -> outputs`.

    O retorno deve ser um mapa (ou None, equivalente a `{}`); pode ser
    síncrono ou `async`. Exceções levantadas tornam o Step FAILURE.
    """

    def __call__(self, inputs: Any, context: Mapping[str, Any]) -> Any:
        ...
