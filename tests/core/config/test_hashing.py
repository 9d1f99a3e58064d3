# tests/core/config/test_hashing.py
"""
Testes do hashing canônico de configuração de run.

Os testes asseguram que:
- o hash é o SHA-256 do JSON canônico
- a ordem das chaves não altera o hash
- alterações na configuração alteram o hash
"""

import hashlib
import json

import pytest

from stepline.core.config.hashing import compute_config_hash


def _canonical_json_bytes(obj: dict) -> bytes:
    """Serialização de referência: chaves ordenadas, separadores compactos, UTF-8."""
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def test_hash_matches_sha256_of_canonical_json():
    cfg = {"steps": [{"run": "echo ç"}], "env": {"B": "2", "A": "1"}}

    expected = hashlib.sha256(_canonical_json_bytes(cfg)).hexdigest()

    assert compute_config_hash(cfg) == expected
    assert len(expected) == 64


def test_hash_is_independent_of_key_order():
    a = {"env": {"A": "1", "B": "2"}, "inputs": {"x": 1}}
    b = {"inputs": {"x": 1}, "env": {"B": "2", "A": "1"}}

    assert compute_config_hash(a) == compute_config_hash(b)


def test_hash_changes_when_config_changes():
    a = {"steps": [{"run": "echo a"}]}
    b = {"steps": [{"run": "echo b"}]}

    assert compute_config_hash(a) != compute_config_hash(b)


def test_hash_rejects_non_dict():
    with pytest.raises(TypeError):
        compute_config_hash([("steps", [])])
