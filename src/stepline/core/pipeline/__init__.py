# src/stepline/core/pipeline/__init__.py
"""
# Pipeline Core — Stepline

Este pacote define os **contratos canônicos** e as **estruturas
fundamentais** de uma run.

## Componentes

- **types**
  - `StepSpec`, `RunConfig`, `LogConfig`: entrada declarativa
  - `StepRecord`: resultado imutável de um Step
  - `RunStatus`, `StepStatus`, `StepKind`: enums canônicos

- **context**
  - `RunContext`: estado mutável da run e escopo de variáveis

- **step**
  - `StepExecutor` (Protocol), `Plugin` (Protocol)
  - `StepInvocation`, `StepOutcome`

## Invariantes

- Nenhum Step enxerga outputs de um Step posterior
- `step_count` nunca é reutilizado
- Estado compartilhado é sempre explícito e rastreável
"""

from .context import ContextStateError, RunContext
from .step import Plugin, StepExecutor, StepInvocation, StepOutcome
from .types import LogConfig, RunConfig, RunStatus, StepKind, StepRecord, StepSpec, StepStatus

__all__ = [
    "ContextStateError",
    "LogConfig",
    "Plugin",
    "RunConfig",
    "RunContext",
    "RunStatus",
    "StepExecutor",
    "StepInvocation",
    "StepKind",
    "StepOutcome",
    "StepRecord",
    "StepSpec",
    "StepStatus",
]
