# src/stepline/core/config/__init__.py

"""
Camada de configuração do Stepline.

Este pacote contém as estruturas e utilitários responsáveis por carregar
o template YAML do pipeline, mesclar overrides locais, identificar a
configuração de uma run por hash e tipar as falhas de configuração.

Responsabilidades do pacote:
    - Carregamento do template (caminho explícito, env ou padrão)
    - Resolução via deep-merge determinístico
    - Hash canônico para rastreabilidade
    - Hierarquia `ConfigError`

Limites explícitos:
    - Não executa pipeline
    - Não resolve expressões `${{ }}`
"""

from .errors import (
    ConfigError,
    ConfigTypeConflictError,
    DuplicateStepIdError,
    ForwardReferenceError,
    InvalidStepError,
    TemplateFormatError,
    TemplateNotFoundError,
)
from .hashing import compute_config_hash
from .loader import get_yaml_content, resolve_template_path
from .merge import deep_merge

__all__ = [
    "ConfigError",
    "ConfigTypeConflictError",
    "DuplicateStepIdError",
    "ForwardReferenceError",
    "InvalidStepError",
    "TemplateFormatError",
    "TemplateNotFoundError",
    "compute_config_hash",
    "deep_merge",
    "get_yaml_content",
    "resolve_template_path",
]
