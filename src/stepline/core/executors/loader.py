# src/stepline/core/executors/loader.py
"""
Registro e carregamento de plugins.

Este módulo isola toda a resolução dinâmica de código de plugins, de modo
que o Engine dependa apenas do contrato `Plugin` e nunca de `importlib`.

Formas de referência aceitas em `plugin:` (ordem de resolução):
    1. identificador registrado no `PluginRegistry`
    2. caminho (absoluto ou relativo ao `cwd` da run) para um arquivo `.py`
    3. caminho para um diretório de pacote (`__init__.py`)
    4. nome de módulo importável (`pacote.modulo`)

O ponto de entrada é o atributo `run` do módulo.

Decisões arquiteturais:
    - O registry valida unicidade de identificadores no registro
    - Módulos carregados por caminho são cacheados por caminho resolvido
    - Falhas de resolução viram `PluginNotFound` / `PluginContractError`;
      erros durante a importação do módulo propagam como estão

Limites explícitos:
    - Não executa plugins
    - Não isola plugins em processo separado
"""

from __future__ import annotations

import hashlib
import importlib
import importlib.util
import sys
from dataclasses import dataclass, field
from pathlib import Path
from types import ModuleType
from typing import Any, Callable, Dict, List, Optional, Union

from stepline.core.constants import PLUGIN_ENTRYPOINT
from stepline.core.exceptions import PluginContractError, PluginNotFound

PluginCallable = Callable[..., Any]


class DuplicatePluginError(ValueError):
    """
    Exceção levantada quando um identificador de plugin é registrado duas vezes.

    A duplicidade é tratada como erro de configuração no momento do
    registro, antes de qualquer execução.
    """


def _entrypoint(target: Union[ModuleType, PluginCallable], ref: str) -> PluginCallable:
    if isinstance(target, ModuleType):
        fn = getattr(target, PLUGIN_ENTRYPOINT, None)
        if not callable(fn):
            raise PluginContractError(
                message=f"Plugin '{ref}' does not expose a callable '{PLUGIN_ENTRYPOINT}'",
                details={"plugin": ref, "entrypoint": PLUGIN_ENTRYPOINT},
                hint="Defina `def run(inputs, context)` no módulo do plugin.",
            )
        return fn
    if not callable(target):
        raise PluginContractError(
            message=f"Plugin '{ref}' is not callable",
            details={"plugin": ref, "received": type(target).__name__},
        )
    return target


@dataclass
class PluginRegistry:
    """
    Registro canônico de plugins por identificador.

    Invariantes:
        - Cada identificador é único no registry
        - A ordem de registro é preservada
        - Apenas callables (ou módulos com `run`) são aceitos
    """

    _plugins: Dict[str, PluginCallable] = field(default_factory=dict, init=False, repr=False)
    _order: List[str] = field(default_factory=list, init=False, repr=False)

    def add(self, identifier: str, plugin: Union[ModuleType, PluginCallable]) -> None:
        if not isinstance(identifier, str) or not identifier.strip():
            raise ValueError("plugin identifier must be a non-empty string")

        if identifier in self._plugins:
            raise DuplicatePluginError(f"Duplicate plugin id: {identifier}")

        self._plugins[identifier] = _entrypoint(plugin, identifier)
        self._order.append(identifier)

    def get(self, identifier: str) -> PluginCallable:
        return self._plugins[identifier]

    def list(self) -> List[str]:
        return list(self._order)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._plugins


class PluginLoader:
    """Resolve referências de plugin em callables `run(inputs, context)`."""

    def __init__(self, registry: Optional[PluginRegistry] = None):
        self.registry = registry if registry is not None else PluginRegistry()
        self._cache: Dict[Path, ModuleType] = {}

    def load(self, ref: str, *, base_dir: Optional[str] = None) -> PluginCallable:
        if ref in self.registry:
            return self.registry.get(ref)

        path = Path(ref).expanduser()
        if not path.is_absolute() and base_dir:
            path = Path(base_dir) / path

        if path.exists():
            return _entrypoint(self._load_path(path.resolve(), ref), ref)

        return _entrypoint(self._import_module(ref), ref)

    def _import_module(self, ref: str) -> ModuleType:
        try:
            return importlib.import_module(ref)
        except ModuleNotFoundError as exc:
            # só traduz quando o módulo ausente é o próprio plugin
            if exc.name and (ref == exc.name or ref.startswith(exc.name + ".")):
                raise PluginNotFound(
                    message=f"Plugin '{ref}' not found",
                    details={"plugin": ref},
                    hint="Informe um caminho existente, um módulo importável ou registre o plugin.",
                ) from exc
            raise
        except (TypeError, ValueError) as exc:
            raise PluginNotFound(
                message=f"Plugin '{ref}' not found",
                details={"plugin": ref},
            ) from exc

    def _load_path(self, path: Path, ref: str) -> ModuleType:
        if path in self._cache:
            return self._cache[path]

        module_name = "stepline_plugin_" + hashlib.sha1(str(path).encode("utf-8")).hexdigest()[:12]

        if path.is_dir():
            init = path / "__init__.py"
            if not init.is_file():
                raise PluginNotFound(
                    message=f"Plugin directory '{ref}' has no __init__.py",
                    details={"plugin": ref, "path": str(path)},
                )
            spec = importlib.util.spec_from_file_location(
                module_name, init, submodule_search_locations=[str(path)]
            )
        elif path.suffix == ".py":
            spec = importlib.util.spec_from_file_location(module_name, path)
        else:
            raise PluginNotFound(
                message=f"Plugin '{ref}' is not a Python file or package",
                details={"plugin": ref, "path": str(path)},
            )

        if spec is None or spec.loader is None:
            raise PluginNotFound(message=f"Plugin '{ref}' cannot be loaded", details={"plugin": ref})

        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except BaseException:
            sys.modules.pop(module_name, None)
            raise

        self._cache[path] = module
        return module
