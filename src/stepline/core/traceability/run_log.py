# src/stepline/core/traceability/run_log.py
"""
Run Logger do Stepline.

Persiste a saída bruta de cada Step em arquivos recuperáveis por run e por
posição do Step:

    <log_prefix>/<run_id>/step-<step_count>.log
    <log_prefix>/<run_id>/step-<step_count>.outputs   (Steps shell)
    <log_prefix>/<run_id>/report.json

Princípios fundamentais:
    - O diretório da run é criado sob demanda
    - Cada arquivo de Step tem um único escritor (append/create)
    - Falhas de gravação nunca mascaram o status real do Step: são
      devolvidas como StepErrorPayload para o chamador registrar como warning

Limites explícitos:
    - Não decide status de Steps ou da run
    - Não interpreta o conteúdo dos logs
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

from stepline.core.errors import StepErrorPayload, log_write_error
from stepline.core.pipeline.types import StepRecord

REPORT_FILENAME = "report.json"


class RunLogger:
    """Gerencia os artefatos de log de uma run."""

    def __init__(self, log_prefix: Union[str, Path], run_id: str):
        self.log_prefix = Path(log_prefix)
        self.run_id = run_id
        self.run_dir = self.log_prefix / run_id

    def step_log_path(self, step_count: int) -> Path:
        return self.run_dir / f"step-{step_count}.log"

    def step_output_path(self, step_count: int) -> Path:
        return self.run_dir / f"step-{step_count}.outputs"

    @property
    def report_path(self) -> Path:
        return self.run_dir / REPORT_FILENAME

    def ensure_dir(self) -> Optional[StepErrorPayload]:
        try:
            self.run_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            return log_write_error(path=str(self.run_dir), exc_message=str(exc))
        return None

    def write(self, record: StepRecord, output: str) -> Optional[StepErrorPayload]:
        """Grava a saída de `record`; retorna o erro em vez de levantá-lo."""
        path = Path(record.log_path) if record.log_path else self.step_log_path(record.step_count)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("a", encoding="utf-8") as f:
                f.write(output)
        except OSError as exc:
            return log_write_error(path=str(path), exc_message=str(exc))
        return None

    def write_report(self, report: Dict[str, Any]) -> Optional[StepErrorPayload]:
        try:
            self.run_dir.mkdir(parents=True, exist_ok=True)
            with self.report_path.open("w", encoding="utf-8") as f:
                json.dump(report, f, ensure_ascii=False, indent=2, default=str)
        except (OSError, TypeError, ValueError) as exc:
            return log_write_error(path=str(self.report_path), exc_message=str(exc))
        return None

    def read(self, step_count: int) -> str:
        return self.step_log_path(step_count).read_text(encoding="utf-8")
