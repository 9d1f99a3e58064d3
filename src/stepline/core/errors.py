"""
Stepline — Canonical Error Structures (v1)

Este módulo define o padrão canônico de erros de execução do Stepline.
Falhas de Steps nunca escapam do Engine como exceções: são convertidas
em payloads estruturados e gravadas no StepRecord, devendo ser:

- explícitas
- serializáveis
- rastreáveis
- acionáveis

Nenhuma decisão implícita é permitida.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StepErrorPayload:
    """
    Payload canônico de erro de um Step.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados relevantes para diagnóstico
    - hint: ação sugerida ao operador (onde corrigir)
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Execução de Steps
STEP_EXIT_CODE = "STEP_EXIT_CODE"
STEP_EXECUTION_ERROR = "STEP_EXECUTION_ERROR"
STEP_CANCELLED = "STEP_CANCELLED"
STEP_TIMEOUT = "STEP_TIMEOUT"

# Plugins
PLUGIN_NOT_FOUND = "PLUGIN_NOT_FOUND"
PLUGIN_CONTRACT_ERROR = "PLUGIN_CONTRACT_ERROR"

# Observabilidade
LOG_WRITE_ERROR = "LOG_WRITE_ERROR"


# ---------------------------------------------------------------------------
# Helpers de fábrica
# ---------------------------------------------------------------------------

def step_exit_code(
    *,
    exit_code: int,
    command: str,
    hint: str = "Consulte o log do Step para identificar o comando que falhou.",
) -> StepErrorPayload:
    return StepErrorPayload(
        type=STEP_EXIT_CODE,
        message=f"Comando finalizou com código de saída {exit_code}",
        details={"exit_code": exit_code, "command": command},
        hint=hint,
    )


def step_execution_error(
    *,
    step: Optional[str] = None,
    exc_type: Optional[str] = None,
    exc_message: Optional[str] = None,
    exit_code: Any = None,
    hint: str = "Verifique o log do Step. Nenhum fallback é aplicado automaticamente.",
) -> StepErrorPayload:
    details: Dict[str, Any] = {"step": step, "exc_type": exc_type}
    if exit_code is not None:
        details["exit_code"] = exit_code
    return StepErrorPayload(
        type=STEP_EXECUTION_ERROR,
        message=exc_message or "Falha inesperada durante a execução do Step",
        details=details,
        hint=hint,
    )


def step_cancelled(*, step: Optional[str] = None) -> StepErrorPayload:
    return StepErrorPayload(
        type=STEP_CANCELLED,
        message="cancelled",
        details={"step": step, "reason": "cancelled"},
        hint="A execução foi cancelada pelo chamador; reexecute o pipeline se necessário.",
    )


def step_timeout(*, step: Optional[str] = None, timeout: float) -> StepErrorPayload:
    return StepErrorPayload(
        type=STEP_TIMEOUT,
        message=f"Step excedeu o timeout de {timeout}s",
        details={"step": step, "reason": "timeout", "timeout": timeout},
        hint="Aumente `timeout` no Step ou investigue o comando bloqueado.",
    )


def log_write_error(*, path: str, exc_message: str) -> StepErrorPayload:
    return StepErrorPayload(
        type=LOG_WRITE_ERROR,
        message="Falha ao gravar log do Step",
        details={"path": path, "exc_message": exc_message},
        hint="Verifique permissões e espaço em disco de `log_config.log_prefix`.",
    )
