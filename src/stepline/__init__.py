# src/stepline/__init__.py
"""
Stepline — engine de execução de pipelines de CI/CD.

Dado um conjunto ordenado e declarativo de Steps (comandos shell ou
plugins carregados dinamicamente), o Stepline executa cada Step em
sequência, resolve expressões `${{ ... }}` contra um contexto de run que
cresce a cada Step, captura o resultado de cada Step e produz um
relatório final da run.

Arquitetura em alto nível:
    - core.config       → template YAML, deep-merge, hash, erros de configuração
    - core.expressions  → parser e resolver de `${{ path }}`
    - core.pipeline     → tipos, RunContext e contratos de executores
    - core.executors    → execução shell e plugin, registro de plugins
    - core.traceability → logs por Step e Run Report
    - core.engine       → planner e loop de execução

Limites explícitos:
    - Não define o schema completo do YAML de pipeline
    - Não implementa clientes de provedores git nem triggers de webhook
    - Não implementa transporte de rede
"""

from .core.engine import Engine, run_template, start
from .core.pipeline.context import RunContext
from .core.pipeline.types import RunConfig, RunStatus, StepRecord, StepSpec, StepStatus

__version__ = "0.1.0"

__all__ = [
    "Engine",
    "RunConfig",
    "RunContext",
    "RunStatus",
    "StepRecord",
    "StepSpec",
    "StepStatus",
    "run_template",
    "start",
]
