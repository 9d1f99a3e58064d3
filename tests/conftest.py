# tests/conftest.py
"""
Fixtures compartilhados para testes do Stepline.

Este módulo define fixtures reutilizáveis que fornecem:
- diretório de logs isolado por teste (via `tmp_path`)
- fábrica de configurações mínimas de run
- caminhos para plugins e templates de fixture
- execução síncrona de uma run (`asyncio.run`) para testes simples

Decisões arquiteturais:
    - Fixtures são mantidas simples e explícitas
    - Cada teste recebe seu próprio `log_prefix`, portanto runs nunca
      compartilham artefatos em disco
    - Corrotinas do Engine são executadas com `asyncio.run` dentro de
      testes síncronos comuns
    - Imports do core são realizados de forma lazy para melhorar a
      clareza de erros durante falhas

Invariantes:
    - Nenhuma fixture altera `os.environ`
    - Nenhuma fixture contém lógica de domínio

Limites explícitos:
    - Não substituir testes de integração
    - Não acoplar testes a detalhes internos dos executores
"""

import asyncio
from pathlib import Path

import pytest


FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def plugins_dir() -> Path:
    """Diretório com plugins de teste (arquivos `.py` e pacotes)."""
    return FIXTURES_DIR / "plugins"


@pytest.fixture
def pipelines_dir() -> Path:
    """Diretório com templates YAML de teste."""
    return FIXTURES_DIR / "pipelines"


@pytest.fixture
def log_prefix(tmp_path: Path) -> str:
    """
    Diretório de logs isolado por teste.

    O diretório não é criado previamente: o Run Logger deve criá-lo sob
    demanda.
    """
    return str(tmp_path / "logs")


@pytest.fixture
def make_config(log_prefix):
    """
    Fábrica de configurações de run.

    Retorna uma função `make(steps, **extra)` que produz um mapa aceito
    por `RunConfig.from_dict`, já apontando `log_config.log_prefix` para o
    diretório isolado do teste.

    Invariantes:
        - O mapa retornado é novo a cada chamada
        - `extra` sobrescreve chaves de nível raiz
    """

    def make(steps, **extra):
        config = {
            "steps": list(steps),
            "log_config": {"log_prefix": log_prefix},
        }
        config.update(extra)
        return config

    return make


@pytest.fixture
def run_pipeline():
    """
    Executa uma run até o fim e retorna o RunContext final.

    Aceita os mesmos argumentos de `stepline.start`.
    """
    from stepline import start

    def run(config, **kwargs):
        return asyncio.run(start(config, **kwargs))

    return run
