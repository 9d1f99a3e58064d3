# src/stepline/core/config/loader.py
"""
Loader canônico do template de pipeline do Stepline.

Este módulo é responsável por localizar, carregar e validar
estruturalmente o template YAML que descreve os Steps de um pipeline.

O template é resolvido a partir de:
    - um caminho explícito (quando fornecido)
    - a variável de ambiente `STEPLINE_TEMPLATE_PATH` (quando não vazia)
    - o arquivo padrão `stepline-pipeline.yaml` no diretório corrente

Opcionalmente, um arquivo local de overrides é aplicado via deep-merge.

Responsabilidades do módulo:
    - Carregar arquivos YAML com `yaml.safe_load`
    - Validar requisitos estruturais mínimos (raiz mapa, `steps` lista)
    - Traduzir falhas em `TemplateNotFoundError` / `TemplateFormatError`

Invariantes:
    - O resultado é sempre um dicionário puro (`dict`)
    - Erros são levantados antes de qualquer execução de Step
    - Mensagens citam apenas o nome do arquivo, nunca o caminho completo

Limites explícitos:
    - Não valida semântica de cada Step (responsabilidade do planner)
    - Não executa pipeline
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml  # PyYAML

from stepline.core.constants import DEFAULT_TEMPLATE_NAME, TEMPLATE_PATH_ENV_KEY

from .errors import TemplateFormatError, TemplateNotFoundError
from .merge import deep_merge


PathLike = Union[str, os.PathLike]


def resolve_template_path(path: Optional[PathLike] = None) -> Path:
    """
    Resolve o caminho efetivo do template.

    Precedência: argumento explícito > `STEPLINE_TEMPLATE_PATH` > arquivo
    padrão no diretório corrente. Valores vazios são ignorados.
    """
    if path:
        return Path(path)

    from_env = os.environ.get(TEMPLATE_PATH_ENV_KEY, "")
    if from_env.strip():
        return Path(from_env)

    return Path.cwd() / DEFAULT_TEMPLATE_NAME


def _load_file(path: Path) -> Dict[str, Any]:
    """
    Carrega um arquivo YAML e valida sua estrutura básica.

    Raises:
        TemplateNotFoundError: Se o arquivo não existir.
        TemplateFormatError: Se o YAML for inválido ou a raiz não for mapa.
    """
    if not path.is_file():
        raise TemplateNotFoundError(f"{path.name} not found")

    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise TemplateFormatError(f"{path.name} format is incorrect") from exc

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise TemplateFormatError(f"{path.name} format is incorrect")

    return data


def get_yaml_content(
    path: Optional[PathLike] = None,
    *,
    local_path: Optional[PathLike] = None,
) -> Dict[str, Any]:
    """
    Carrega e valida o template de pipeline.

    Política de resolução:
        - O template principal é obrigatório
        - O override local é opcional e ignorado quando ausente
        - Quando presente, o override tem prioridade (deep-merge); listas,
          inclusive `steps`, são substituídas por inteiro

    Args:
        path (Optional[PathLike]): Caminho explícito do template.
        local_path (Optional[PathLike]): Caminho opcional de overrides locais.

    Returns:
        Dict[str, Any]: Documento resolvido, com `steps` garantidamente lista.

    Raises:
        TemplateNotFoundError: Se o template não existir.
        TemplateFormatError: Se o conteúdo for inválido.
        ConfigTypeConflictError: Se ocorrer conflito estrutural durante o merge.
    """
    template = resolve_template_path(path)
    document = _load_file(template)

    if local_path is not None:
        local_file = Path(local_path)
        if local_file.is_file():
            document = deep_merge(document, _load_file(local_file))

    if not isinstance(document.get("steps"), list):
        raise TemplateFormatError(f"{template.name} format is incorrect")

    return document
