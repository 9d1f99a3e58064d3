# src/stepline/core/config/merge.py
"""
Deep-merge entre o template de pipeline e um override local.

Política:
    - mapa + mapa → merge recursivo por chave
    - lista → substituída por inteiro (`steps` nunca é mesclado item a item)
    - escalar → substituído pelo override, mesmo que o tipo escalar mude
      (`PORT: 8080` → `PORT: "9090"`), pois valores de `env` viram texto
    - chave ausente ou `null` na base → recebe o override
    - `null` no override → limpa o valor da base
    - mapa ou lista contra escalar → `ConfigTypeConflictError`

Nenhum dos inputs é mutado; o resultado é sempre um dict novo.
"""

from copy import deepcopy
from typing import Any, Dict

from .errors import ConfigTypeConflictError


def _shape(value: Any) -> str:
    if isinstance(value, dict):
        return "mapping"
    if isinstance(value, list):
        return "list"
    return "scalar"


def _merge_at(path: str, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    result: Dict[str, Any] = deepcopy(base)

    for key, incoming in override.items():
        where = f"{path}.{key}" if path else str(key)
        current = result.get(key)

        if current is None:
            result[key] = deepcopy(incoming)
        elif isinstance(current, dict) and isinstance(incoming, dict):
            result[key] = _merge_at(where, current, incoming)
        elif _shape(current) == _shape(incoming) or incoming is None:
            result[key] = deepcopy(incoming)
        else:
            raise ConfigTypeConflictError(
                f"Conflito de tipo em '{where}': {_shape(current)} vs {_shape(incoming)}"
            )

    return result


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Aplica `override` sobre `base` e devolve o documento resultante.

    Raises:
        ConfigTypeConflictError: Se a raiz não for mapa ou se uma chave mudar
            de forma (mapa, lista, escalar) entre base e override.
    """
    if not isinstance(base, dict) or not isinstance(override, dict):
        raise ConfigTypeConflictError(
            f"Deep-merge requer mapas na raiz, recebido: "
            f"{type(base).__name__} vs {type(override).__name__}"
        )
    return _merge_at("", base, override)
