# src/stepline/core/traceability/__init__.py
"""
Rastreabilidade de execuções do Stepline.

- run_log → arquivos de log por Step e persistência do relatório
- report  → Run Report v1 (estado por Step + Event Log)
"""

from .report import RunReport, add_event, create_report, load_report, run_finished, step_finished, step_started
from .run_log import REPORT_FILENAME, RunLogger

__all__ = [
    "REPORT_FILENAME",
    "RunLogger",
    "RunReport",
    "add_event",
    "create_report",
    "load_report",
    "run_finished",
    "step_finished",
    "step_started",
]
