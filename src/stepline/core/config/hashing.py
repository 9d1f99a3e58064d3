# src/stepline/core/config/hashing.py
"""
Hashing canônico de configuração de run.

O hash representa a identidade estrutural da configuração de uma run
(Steps, env e inputs globais) e é gravado no relatório final para
permitir comparar execuções do mesmo pipeline.

Decisões arquiteturais:
    - Serialização JSON canônica (chaves ordenadas, separadores compactos)
    - SHA-256, sempre 64 caracteres hexadecimais
    - Valores não serializáveis são convertidos via `str`
"""

import hashlib
import json
from typing import Any, Dict


def compute_config_hash(config: Dict[str, Any]) -> str:
    if not isinstance(config, dict):
        raise TypeError(
            f"Config para hashing deve ser dict, recebido: {type(config).__name__}"
        )

    canonical_json = json.dumps(
        config,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )
    return hashlib.sha256(canonical_json.encode("utf-8")).hexdigest()
