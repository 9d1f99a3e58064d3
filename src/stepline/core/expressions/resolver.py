# src/stepline/core/expressions/resolver.py
"""
Resolver de expressões do Stepline.

Recebe um valor aninhado arbitrário (escalar, mapa, sequência) e um
escopo de variáveis somente-leitura, devolvendo um valor estruturalmente
idêntico em que cada folha string teve seus marcadores `${{ path }}`
substituídos.

Política de substituição:
    - Folha composta por exatamente uma expressão → valor nativo
      (bool, número, mapa...) sem conversão para texto
    - Expressão embutida em texto maior → valor convertido para texto
      (`true`/`false` para bool, JSON para mapas e listas, vazio para None)
    - Caminho não resolvível → vazio (None como folha inteira, "" embutido)

Princípios fundamentais:
    - O resolver nunca levanta exceção por causa de uma expressão
    - Não há efeitos colaterais: entradas e escopo nunca são mutados
    - Idempotência: valores sem marcadores são devolvidos inalterados
    - Valores substituídos não são reprocessados

Decisões arquiteturais:
    - Visitor recursivo via `functools.singledispatch` sobre o modelo
      str | número | bool | None | list | tuple | mapa
    - Chaves de mapas nunca são resolvidas
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from functools import singledispatch
from typing import Any, Iterator, Optional, Tuple

from .parser import Expression, Segment, parse_template


class _Missing:
    """Sentinela para caminhos não resolvidos."""

    def __repr__(self) -> str:  # pragma: no cover
        return "<missing>"


MISSING = _Missing()


def lookup(scope: Mapping[str, Any], path: Optional[Tuple[Segment, ...]]) -> Any:
    """
    Percorre `scope` seguindo `path`.

    Retorna `MISSING` quando qualquer segmento não existe ou quando o
    caminho é inválido; nunca levanta exceção.
    """
    if not path:
        return MISSING

    current: Any = scope
    for segment in path:
        if isinstance(current, Mapping):
            if segment in current:
                current = current[segment]
            elif isinstance(segment, int) and str(segment) in current:
                current = current[str(segment)]
            else:
                return MISSING
        elif isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
            if not isinstance(segment, int) or segment >= len(current):
                return MISSING
            current = current[segment]
        else:
            return MISSING
    return current


def thaw(value: Any) -> Any:
    """Converte mapas somente-leitura (ex.: snapshots) em dicts comuns."""
    if isinstance(value, Mapping):
        return {k: thaw(v) for k, v in value.items()}
    if isinstance(value, list):
        return [thaw(v) for v in value]
    return value


def stringify(value: Any) -> str:
    if value is MISSING or value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(thaw(value), ensure_ascii=False, default=str)
    return str(value)


def resolve_string(text: str, scope: Mapping[str, Any]) -> Any:
    parts = parse_template(text)
    if not any(isinstance(p, Expression) for p in parts):
        return text

    if len(parts) == 1:
        value = lookup(scope, parts[0].path)
        return None if value is MISSING else thaw(value)

    return "".join(
        p if isinstance(p, str) else stringify(lookup(scope, p.path))
        for p in parts
    )


@singledispatch
def _visit(value: Any, scope: Mapping[str, Any]) -> Any:
    return value


@_visit.register(str)
def _(value: str, scope: Mapping[str, Any]) -> Any:
    return resolve_string(value, scope)


@_visit.register(Mapping)
def _(value: Mapping, scope: Mapping[str, Any]) -> Any:
    return {k: _visit(v, scope) for k, v in value.items()}


@_visit.register(list)
def _(value: list, scope: Mapping[str, Any]) -> Any:
    return [_visit(v, scope) for v in value]


@_visit.register(tuple)
def _(value: tuple, scope: Mapping[str, Any]) -> Any:
    return tuple(_visit(v, scope) for v in value)


def resolve(value: Any, scope: Mapping[str, Any]) -> Any:
    """
    Resolve todas as expressões contidas em `value` contra `scope`.

    Args:
        value (Any): Valor aninhado arbitrário.
        scope (Mapping[str, Any]): Escopo de variáveis (ex.: `RunContext.snapshot()`).

    Returns:
        Any: Cópia estruturalmente idêntica com expressões substituídas.
    """
    return _visit(value, scope)


@singledispatch
def _collect(value: Any) -> Iterator[Expression]:
    return iter(())


@_collect.register(str)
def _(value: str) -> Iterator[Expression]:
    return (p for p in parse_template(value) if isinstance(p, Expression))


@_collect.register(Mapping)
def _(value: Mapping) -> Iterator[Expression]:
    for v in value.values():
        yield from _collect(v)


@_collect.register(list)
@_collect.register(tuple)
def _(value: Sequence) -> Iterator[Expression]:
    for v in value:
        yield from _collect(v)


def iter_expressions(value: Any) -> Iterator[Expression]:
    """Enumera todas as expressões presentes em `value`, em ordem de ocorrência."""
    return _collect(value)


def has_expressions(value: Any) -> bool:
    return next(iter_expressions(value), None) is not None
