"""
Stepline — Canonical Exceptions (v1)

Este módulo define exceções tipadas internas levantadas por executores
de Steps e pelo loader de plugins.

Objetivo:
- Permitir que executores levantem exceções semânticas tipadas
- Facilitar o mapeamento determinístico para StepErrorPayload
- Evitar ValueError/RuntimeError genéricos em pontos críticos

Regras:
- Exceções carregam apenas dados estruturados (serializáveis).
- Nenhuma exceção deste módulo escapa de `Engine.start()`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class StepException(Exception):
    """Base class para exceções internas de execução.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Mensagem deve ser curta e humana
    """

    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover
        return self.message


# ---------------------------------------------------------------------------
# Plugins
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PluginNotFound(StepException):
    """Plugin não registrado e não localizável por caminho ou módulo."""


@dataclass(frozen=True)
class PluginContractError(StepException):
    """Plugin não expõe `run(inputs, context)` ou retornou tipo inválido."""


@dataclass(frozen=True)
class PluginExited(StepException):
    """Plugin encerrou o interpretador com `sys.exit()`; `details` traz o `exit_code`."""


# ---------------------------------------------------------------------------
# Controle de execução
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StepCancelled(StepException):
    """Execução do Step abortada por cancelamento da run."""


@dataclass(frozen=True)
class StepTimeout(StepException):
    """Execução do Step excedeu o timeout declarado."""
