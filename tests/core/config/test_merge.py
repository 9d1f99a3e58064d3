# tests/core/config/test_merge.py
"""
Testes da política de deep-merge entre template e overrides locais.

Os testes asseguram que:
- valores escalares são sobrescritos, inclusive com troca de tipo
- dicionários são mesclados de forma recursiva
- listas (inclusive `steps`) são substituídas integralmente
- conflitos de forma (mapa, lista, escalar) são rejeitados explicitamente
- objetos de entrada não são mutados

Invariantes:
    - Chaves não sobrescritas são preservadas
    - Nenhum merge parcial é produzido em caso de erro
"""

import pytest

from stepline.core.config.errors import ConfigTypeConflictError
from stepline.core.config.merge import deep_merge


def test_merge_simple_override():
    base = {"env": {"STAGE": "dev"}, "cwd": "/srv"}
    override = {"cwd": "/tmp"}

    out = deep_merge(base, override)

    assert out == {"env": {"STAGE": "dev"}, "cwd": "/tmp"}
    assert base == {"env": {"STAGE": "dev"}, "cwd": "/srv"}
    assert override == {"cwd": "/tmp"}


def test_merge_nested_env():
    """Overrides de `env` mesclam chave a chave em vez de substituir o mapa."""
    base = {"env": {"STAGE": "dev", "REGION": "eu"}}
    override = {"env": {"STAGE": "prod"}}

    assert deep_merge(base, override) == {"env": {"STAGE": "prod", "REGION": "eu"}}


def test_merge_steps_list_replaced():
    base = {"steps": [{"run": "echo a"}, {"run": "echo b"}]}
    override = {"steps": [{"run": "echo c"}]}

    out = deep_merge(base, override)

    assert out == {"steps": [{"run": "echo c"}]}
    out["steps"].append({"run": "echo d"})
    assert override == {"steps": [{"run": "echo c"}]}


def test_merge_null_base_takes_override():
    assert deep_merge({"inputs": None}, {"inputs": {"a": 1}}) == {"inputs": {"a": 1}}


def test_merge_type_conflict_raises():
    """
    Verifica que mapa versus escalar é conflito estrutural.

    Exemplo:
        - base:     {"env": {"STAGE": "dev"}}
        - override: {"env": "prod"}
    """
    with pytest.raises(ConfigTypeConflictError):
        deep_merge({"env": {"STAGE": "dev"}}, {"env": "prod"})


def test_merge_rejects_non_dict_root():
    with pytest.raises(ConfigTypeConflictError):
        deep_merge({"steps": []}, [{"run": "echo"}])


def test_merge_scalar_type_may_change():
    """Escalares trocam de tipo livremente: valores de `env` viram texto depois."""
    out = deep_merge({"env": {"PORT": 8080, "DEBUG": False}}, {"env": {"PORT": "9090", "DEBUG": "1"}})

    assert out == {"env": {"PORT": "9090", "DEBUG": "1"}}


def test_merge_null_override_clears_value():
    assert deep_merge({"cwd": "/srv", "env": {"A": "1"}}, {"cwd": None}) == {"cwd": None, "env": {"A": "1"}}


def test_merge_conflict_reports_dotted_path():
    with pytest.raises(ConfigTypeConflictError, match=r"env\.PATHS"):
        deep_merge({"env": {"PATHS": ["a"]}}, {"env": {"PATHS": "a:b"}})
