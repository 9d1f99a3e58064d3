# src/stepline/core/traceability/report.py
"""
Run Report v1 — relatório final de uma execução do Stepline.

O relatório consolida, de forma determinística e auditável:
    - identidade da run (run_id, timestamps, status final)
    - hash da configuração executada
    - estado de cada Step (status, exit code, erro, duração, log)
    - Event Log ordenado (run_started, step_started, step_finished, ...)
    - warnings não fatais

Princípios fundamentais:
    - Eventos são sempre adicionados explicitamente, nunca inferidos
    - A ordem de chamada é a ordem canônica do Event Log
    - Timestamps são sempre UTC timezone-aware
    - Steps são indexados pela posição (`step_count`), pois `id` é opcional

Limites explícitos:
    - Não executa Steps
    - Não decide status (apenas registra o que o Engine informa)
"""

from __future__ import annotations

import json
from copy import deepcopy
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from stepline.core.pipeline.types import StepRecord


def _utc(dt: datetime) -> datetime:
    # datetimes sem timezone são tratados como UTC
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt.astimezone(timezone.utc)


def _iso(dt: datetime) -> str:
    return _utc(dt).isoformat()


def _elapsed_ms(since_iso: str, until: datetime) -> int:
    delta = _utc(until) - _utc(datetime.fromisoformat(since_iso))
    return max(0, int(delta.total_seconds() * 1000))


@dataclass
class RunReport:
    """
    Registro forense de uma run.

    Campos principais:
        - run: metadados da execução (run_id, started_at, finished_at, status)
        - inputs: identidade da configuração (config_hash)
        - steps: estado por posição (`"1"`, `"2"`, ...)
        - events: Event Log ordenado
        - warnings: warnings por chave de Step
    """
    run: Dict[str, Any]
    inputs: Dict[str, Any]
    steps: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    events: List[Dict[str, Any]] = field(default_factory=list)
    warnings: Dict[str, List[str]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Cópia profunda e serializável; alterações no retorno não afetam o relatório."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunReport":
        return cls(**{name: deepcopy(data.get(name) or {}) for name in ("run", "inputs", "steps", "warnings")},
                   events=deepcopy(data.get("events") or []))


def create_report(*, run_id: str, started_at: datetime, config_hash: str, step_total: int) -> RunReport:
    """
    Cria o relatório inicial de uma run.

    Esta função **não emite eventos implicitamente**: o Event Log inicia
    vazio e só é preenchido por `add_event`, `step_started` e `step_finished`.
    """
    return RunReport(
        run={
            "run_id": run_id,
            "started_at": _iso(started_at),
            "status": "pending",
            "step_total": step_total,
        },
        inputs={"config_hash": config_hash},
    )


def add_event(
    report: RunReport,
    *,
    event_type: str,
    ts: datetime,
    step_count: Optional[int] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> None:
    ev: Dict[str, Any] = {"event_type": event_type, "timestamp": _iso(ts)}
    if step_count is not None:
        ev["step_count"] = step_count
    if payload is not None:
        ev["payload"] = payload
    report.events.append(ev)


def step_started(report: RunReport, *, step_count: int, step_id: Optional[str], kind: str, ts: datetime) -> None:
    report.steps[str(step_count)] = {
        "step_count": step_count,
        "id": step_id,
        "kind": kind,
        "status": "running",
        "started_at": _iso(ts),
    }
    add_event(report, event_type="step_started", ts=ts, step_count=step_count)


def step_finished(report: RunReport, *, record: StepRecord, ts: datetime) -> None:
    """Registra o término (ou skip) de um Step a partir do StepRecord."""
    key = str(record.step_count)
    s = report.steps.setdefault(key, {"step_count": record.step_count, "id": record.id, "kind": record.kind.value})

    started_iso = s.get("started_at") or _iso(ts)

    s.update(
        {
            "status": record.status.value,
            "finished_at": _iso(ts),
            "duration_ms": record.duration_ms or _elapsed_ms(started_iso, ts),
            "exit_code": record.exit_code,
            "error": record.error,
            "log_path": record.log_path,
            "continue_on_error": record.continue_on_error,
            "outputs": dict(record.outputs),
        }
    )
    event_type = "step_skipped" if record.status.value == "skipped" else "step_finished"
    add_event(
        report,
        event_type=event_type,
        ts=ts,
        step_count=record.step_count,
        payload={"status": record.status.value},
    )


def run_finished(report: RunReport, *, status: str, ts: datetime, warnings: Dict[str, List[str]]) -> None:
    report.run["status"] = status
    report.run["finished_at"] = _iso(ts)
    report.run["duration_ms"] = _elapsed_ms(report.run["started_at"], ts)
    report.warnings = {k: list(v) for k, v in warnings.items()}
    add_event(report, event_type="run_finished", ts=ts, payload={"status": status})


def load_report(path: Path) -> RunReport:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return RunReport.from_dict(data)
