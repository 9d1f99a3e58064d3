# src/stepline/core/engine/planner.py
"""
Planejador de execução do pipeline.

Este módulo valida a estrutura do pipeline antes de qualquer execução e
produz a sequência de Steps a executar. A ordem é sempre a ordem de
declaração: o Stepline executa Steps estritamente em sequência.

O planner opera exclusivamente em nível estrutural, analisando:
    - tipos dos itens declarados
    - unicidade de `id`
    - referências `steps.<id>` em `run`, `inputs` e `env`

Decisões arquiteturais:
    - Referência a um Step declarado depois (ou ao próprio Step) é erro
      estrutural: seus outputs nunca estariam disponíveis
    - Referência a um `id` inexistente não é erro: segue a política
      leniente do resolver e resulta em valor vazio
    - Erros estruturais são levantados de forma síncrona

Invariantes:
    - Nenhum Step válido é reordenado, removido ou duplicado
    - A mesma definição produz sempre o mesmo plano

Limites explícitos:
    - Não executa Steps
    - Não resolve expressões
"""

from __future__ import annotations

from typing import Dict, Iterable, List

from stepline.core.config.errors import DuplicateStepIdError, ForwardReferenceError, InvalidStepError
from stepline.core.expressions.resolver import iter_expressions
from stepline.core.pipeline.types import StepSpec


def _referenced_step_ids(spec: StepSpec) -> List[str]:
    refs: List[str] = []
    for expr in iter_expressions([spec.run, spec.inputs, spec.env]):
        path = expr.path
        if path and len(path) >= 2 and path[0] == "steps" and isinstance(path[1], str):
            refs.append(path[1])
    return refs


def plan_execution(steps: Iterable[StepSpec]) -> List[StepSpec]:
    """
    Valida e devolve a sequência de Steps a executar.

    Args:
        steps (Iterable[StepSpec]): Steps na ordem de declaração.

    Returns:
        List[StepSpec]: Os mesmos Steps, na mesma ordem.

    Raises:
        InvalidStepError: Se algum item não for StepSpec ou a lista for vazia.
        DuplicateStepIdError: Se dois Steps declararem o mesmo `id`.
        ForwardReferenceError: Se um Step referenciar outputs de um Step posterior.
    """
    step_list = list(steps)
    if not step_list:
        raise InvalidStepError("pipeline must declare at least one step")

    position_by_id: Dict[str, int] = {}
    for position, spec in enumerate(step_list, start=1):
        if not isinstance(spec, StepSpec):
            raise InvalidStepError(f"Step {position} must be a StepSpec, got {type(spec).__name__}")
        if spec.id is None:
            continue
        if spec.id in position_by_id:
            raise DuplicateStepIdError(f"Duplicate step id: {spec.id}")
        position_by_id[spec.id] = position

    for position, spec in enumerate(step_list, start=1):
        for ref in _referenced_step_ids(spec):
            declared_at = position_by_id.get(ref)
            if declared_at is not None and declared_at >= position:
                raise ForwardReferenceError(
                    f"Step {position} references 'steps.{ref}' which runs at position {declared_at}"
                )

    return step_list
