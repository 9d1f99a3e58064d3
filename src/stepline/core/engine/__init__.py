# src/stepline/core/engine/__init__.py
"""
Engine do Stepline.

Componentes principais:
    - planner → validação estrutural do pipeline (ids, referências)
    - engine  → loop sequencial de execução e relatório da run

Princípios fundamentais:
    - Planejamento e execução são responsabilidades separadas
    - Cada Step é executado no máximo uma vez por run
    - O resultado da run reflete explicitamente o estado de cada Step
"""

from .engine import Engine, run_template, start
from .planner import plan_execution

__all__ = ["Engine", "plan_execution", "run_template", "start"]
