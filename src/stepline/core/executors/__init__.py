# src/stepline/core/executors/__init__.py
"""
Executores de Steps do Stepline.

- shell  → variante `run` (subprocesso via shell do host)
- plugin → variante `plugin` (código carregado dinamicamente)
- loader → registro e resolução de plugins
- base   → timeout, cancelamento e conversão de erros comuns
"""

from .loader import DuplicatePluginError, PluginLoader, PluginRegistry
from .plugin import PluginExecutor
from .shell import ShellExecutor, parse_output_file

__all__ = [
    "DuplicatePluginError",
    "PluginExecutor",
    "PluginLoader",
    "PluginRegistry",
    "ShellExecutor",
    "parse_output_file",
]
