# src/stepline/core/pipeline/types.py
"""
Tipos canônicos do pipeline do Stepline.

Este módulo define as estruturas e enums fundamentais que padronizam
a comunicação entre template, Engine, executores e relatório final.

Componentes principais:
    - RunStatus  → estados de uma run (PENDING, RUNNING, SUCCESS, FAILURE)
    - StepStatus → estados finais de Steps (SUCCESS, FAILURE, SKIPPED)
    - StepKind   → variante de execução (RUN para shell, PLUGIN)
    - StepSpec   → Step como declarado no template (imutável)
    - LogConfig  → destino dos artefatos de log
    - RunConfig  → requisição completa de uma run
    - StepRecord → resultado imutável de um Step executado

Princípios fundamentais:
    - Tipos são estáveis e serializáveis
    - Validação estrutural de cada Step acontece na construção
    - Nenhuma lógica de execução vive neste módulo

Invariantes:
    - Enums possuem valores textuais canônicos
    - StepSpec possui exatamente um entre `run` e `plugin`
    - StepRecord é imutável e seguro contra mutação acidental

Limites explícitos:
    - Não executa Steps
    - Não resolve expressões
    - Não valida relações entre Steps (responsabilidade do planner)
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from stepline.core.config.errors import InvalidStepError


class RunStatus(str, Enum):
    """
    Estados de uma run.

    Transições válidas: PENDING → RUNNING → {SUCCESS, FAILURE}.
    SUCCESS e FAILURE são finais; após eles o contexto é imutável.
    """
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILURE = "failure"


class StepStatus(str, Enum):
    """
    Estados finais possíveis de um Step.

    Estados definidos:
        - SUCCESS: comando com exit code 0 ou plugin retornou normalmente
        - FAILURE: exit code diferente de 0, exceção, timeout ou cancelamento
        - SKIPPED: não executado porque a run foi interrompida antes
    """
    SUCCESS = "success"
    FAILURE = "failure"
    SKIPPED = "skipped"


class StepKind(str, Enum):
    """Variante de execução de um Step."""
    RUN = "run"
    PLUGIN = "plugin"


def _as_env(value: Any, *, where: str) -> Dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise InvalidStepError(f"{where}: env must be a mapping")
    return {str(k): "" if v is None else str(v) for k, v in value.items()}


def _valid_timeout(value: Any) -> bool:
    if value is None:
        return True
    return not isinstance(value, bool) and isinstance(value, (int, float)) and value > 0


def _first(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return default


@dataclass(frozen=True)
class StepSpec:
    """
    Um Step do pipeline como declarado no template.

    Campos:
        - run: texto de comando(s) shell
        - plugin: caminho, módulo ou identificador registrado do plugin
        - id: identificador usado em `steps.<id>.outputs.*`
        - name: rótulo livre para logs e relatório
        - inputs: dados aninhados arbitrários (podem conter expressões)
        - env: overrides de ambiente do Step
        - continue_on_error: falha do Step não interrompe a run
        - timeout: limite em segundos (None → default da run)

    Invariantes:
        - Exatamente um entre `run` e `plugin` está definido
        - `id`, quando presente, é string não vazia
    """
    run: Optional[str] = None
    plugin: Optional[str] = None
    id: Optional[str] = None
    name: Optional[str] = None
    inputs: Any = None
    env: Dict[str, str] = field(default_factory=dict)
    continue_on_error: bool = False
    timeout: Optional[float] = None

    def __post_init__(self) -> None:
        label = self.id or self.name or "<anonymous>"
        has_run = isinstance(self.run, str) and bool(self.run.strip())
        has_plugin = isinstance(self.plugin, str) and bool(self.plugin.strip())

        if not has_run and not has_plugin:
            raise InvalidStepError(f"Step '{label}': one of 'run' or 'plugin' is required")
        if has_run and has_plugin:
            raise InvalidStepError(f"Step '{label}': 'run' and 'plugin' are mutually exclusive")

        if self.id is not None and (not isinstance(self.id, str) or not self.id.strip()):
            raise InvalidStepError("step.id must be a non-empty string")

        if not isinstance(self.env, dict):
            raise InvalidStepError(f"Step '{label}': env must be a mapping")

        if not isinstance(self.continue_on_error, bool):
            raise InvalidStepError(f"Step '{label}': continue-on-error must be true or false")

        if not _valid_timeout(self.timeout):
            raise InvalidStepError(f"Step '{label}': timeout must be a positive number")

    @property
    def kind(self) -> StepKind:
        return StepKind.RUN if self.run else StepKind.PLUGIN

    @property
    def label(self) -> str:
        return self.name or self.id or (self.run or self.plugin or "")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StepSpec":
        """Constrói um StepSpec a partir de um item do template (chaves kebab, snake ou camel)."""
        if not isinstance(data, Mapping):
            raise InvalidStepError(f"Step must be a mapping, got {type(data).__name__}")

        label = data.get("id") or data.get("name") or "<anonymous>"
        return cls(
            run=data.get("run"),
            plugin=data.get("plugin") or data.get("uses"),
            id=data.get("id"),
            name=data.get("name"),
            inputs=data.get("inputs"),
            env=_as_env(data.get("env"), where=f"Step '{label}'"),
            continue_on_error=_first(data, "continue-on-error", "continue_on_error", "continueOnError", default=False),
            timeout=data.get("timeout"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run": self.run,
            "plugin": self.plugin,
            "id": self.id,
            "name": self.name,
            "inputs": self.inputs,
            "env": dict(self.env),
            "continue_on_error": self.continue_on_error,
            "timeout": self.timeout,
        }


def default_log_prefix() -> str:
    return os.path.join(tempfile.gettempdir(), "stepline", "logs")


@dataclass(frozen=True)
class LogConfig:
    """Destino dos artefatos de log: `<log_prefix>/<run_id>/`."""
    log_prefix: str = field(default_factory=default_log_prefix)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "LogConfig":
        if not data:
            return cls()
        prefix = _first(data, "log_prefix", "logPrefix")
        return cls(log_prefix=str(prefix)) if prefix else cls()


@dataclass(frozen=True)
class RunConfig:
    """
    Requisição completa de uma run.

    Campos:
        - steps: sequência ordenada de StepSpec (obrigatória)
        - env: ambiente global aplicado a todos os Steps
        - inputs: variáveis globais disponíveis a todas as expressões
        - log_config: configuração de logs
        - cwd: diretório de trabalho dos Steps shell (None → corrente)
        - default_timeout: timeout em segundos aplicado a Steps sem `timeout`
    """
    steps: List[StepSpec]
    env: Dict[str, str] = field(default_factory=dict)
    inputs: Dict[str, Any] = field(default_factory=dict)
    log_config: LogConfig = field(default_factory=LogConfig)
    cwd: Optional[str] = None
    default_timeout: Optional[float] = None

    def __post_init__(self) -> None:
        if not _valid_timeout(self.default_timeout):
            raise InvalidStepError("Run config: default_timeout must be a positive number")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RunConfig":
        """
        Constrói a RunConfig a partir de um documento (ex.: `get_yaml_content()`).

        Itens de `steps` podem ser mapas ou StepSpec já construídos.
        """
        if not isinstance(data, Mapping):
            raise InvalidStepError(f"Run config must be a mapping, got {type(data).__name__}")

        raw_steps = data.get("steps")
        if not isinstance(raw_steps, (list, tuple)):
            raise InvalidStepError("Run config requires a 'steps' list")

        steps = [s if isinstance(s, StepSpec) else StepSpec.from_dict(s) for s in raw_steps]

        inputs = data.get("inputs") or {}
        if not isinstance(inputs, Mapping):
            raise InvalidStepError("Run config 'inputs' must be a mapping")

        log_config = _first(data, "log_config", "logConfig")
        if not isinstance(log_config, LogConfig):
            log_config = LogConfig.from_dict(log_config)

        return cls(
            steps=steps,
            env=_as_env(data.get("env"), where="Run config"),
            inputs=dict(inputs),
            log_config=log_config,
            cwd=data.get("cwd"),
            default_timeout=_first(data, "default_timeout", "defaultTimeout"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "steps": [s.to_dict() for s in self.steps],
            "env": dict(self.env),
            "inputs": dict(self.inputs),
            "log_config": {"log_prefix": self.log_config.log_prefix},
            "cwd": self.cwd,
            "default_timeout": self.default_timeout,
        }


@dataclass(frozen=True)
class StepRecord:
    """
    Resultado imutável de um Step.

    Campos:
        - step_count: posição 1-based do Step na run
        - id: identificador declarado (quando houver)
        - status: estado final do Step
        - kind: variante de execução
        - name: rótulo do Step
        - outputs: valores produzidos pelo Step
        - log_path: arquivo de log do Step (sempre presente se executado)
        - exit_code: código de saída (apenas Steps shell)
        - error: StepErrorPayload serializado quando status == FAILURE
        - continue_on_error: falha não altera o status da run
        - duration_ms: duração da execução

    Invariantes:
        - Uma instância nunca é alterada após criada
        - `step_count` e `id` estão presentes mesmo em falhas
    """
    step_count: int
    id: Optional[str]
    status: StepStatus
    kind: StepKind
    name: Optional[str] = None
    outputs: Dict[str, Any] = field(default_factory=dict)
    log_path: Optional[str] = None
    exit_code: Optional[int] = None
    error: Optional[Dict[str, Any]] = None
    continue_on_error: bool = False
    duration_ms: int = 0

    @property
    def is_fatal(self) -> bool:
        return self.status == StepStatus.FAILURE and not self.continue_on_error

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        data["kind"] = self.kind.value
        return data
