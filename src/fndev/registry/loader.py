"""Handler module loading with dependency tracking."""

from __future__ import annotations

import importlib.util
import inspect
import logging
import os
import re
from types import ModuleType
from typing import Optional

from ..errors import HandlerError
from ..type_utils import HandlerFunc
from .local import ModuleEntry, ModuleRegistry, default_registry, purge


logger = logging.getLogger(__name__)

HANDLER_ATTRIBUTE = "handler"


def module_name_for(path: str, root: str) -> str:
    """Derive a stable ``sys.modules`` key for a handler file."""
    rel = os.path.relpath(path, root)
    stem = os.path.splitext(rel)[0]
    return "_fndev_handler_" + re.sub(r"\W", "_", stem)


class HandlerLoader:
    """
    Loads handler files from a project root.

    Every project-local module that a handler imports while executing (or
    holds a reference to afterwards) is recorded as a child of the handler's
    registry entry, so purging the handler also forces those to re-execute.
    """

    def __init__(self, root: str | os.PathLike[str], registry: Optional[ModuleRegistry] = None):
        self.root = os.path.realpath(root)
        self.registry = registry if registry is not None else default_registry()

    def load(self, path: str | os.PathLike[str]) -> ModuleType:
        """Return the registered module for ``path``, executing it if needed."""
        entry = self.registry.get(path)
        if entry is not None:
            return entry.module

        canonical = self.registry.resolve(path)
        name = module_name_for(canonical, self.root)
        spec = importlib.util.spec_from_file_location(name, canonical)
        if spec is None or spec.loader is None:
            raise HandlerError(f"cannot load handler module from {canonical}")

        modules = self.registry.modules
        before = set(modules)
        module = importlib.util.module_from_spec(spec)
        modules[name] = module
        try:
            spec.loader.exec_module(module)
        except BaseException:
            # Leave nothing half-imported behind for the next attempt.
            for new_name in set(modules) - before:
                if new_name == name or self._is_local(modules.get(new_name)):
                    modules.pop(new_name, None)
            raise

        children = self._record_children(name, module, before)
        self.registry.register(ModuleEntry(canonical, name, module, children))
        logger.debug("loaded %s (%d local dependencies)", canonical, len(children))
        return module

    def reload(self, path: str | os.PathLike[str]) -> ModuleType:
        purge(path, self.registry)
        return self.load(path)

    def load_handler(self, path: str | os.PathLike[str], *, fresh: bool = True) -> HandlerFunc:
        """Load ``path`` and return its ``handler`` callable."""
        module = self.reload(path) if fresh else self.load(path)
        func = getattr(module, HANDLER_ATTRIBUTE, None)
        if not callable(func):
            raise HandlerError(
                f"{os.fspath(path)} does not define a callable `{HANDLER_ATTRIBUTE}`"
            )
        return func

    def _record_children(self, name: str, module: ModuleType, before: set[str]) -> set[str]:
        modules = self.registry.modules
        candidates: dict[str, ModuleType] = {}

        for new_name in set(modules) - before:
            if new_name != name:
                candidates[new_name] = modules[new_name]
        for ref_name, ref in self._referenced_modules(name, module).items():
            candidates.setdefault(ref_name, ref)

        return self._register_children(candidates, {name})

    def _referenced_modules(self, name: str, module: ModuleType) -> dict[str, ModuleType]:
        """Modules held by ``module``'s globals, directly or as a value's ``__module__``."""
        modules = self.registry.modules
        found: dict[str, ModuleType] = {}
        for value in list(vars(module).values()):
            if inspect.ismodule(value):
                found.setdefault(value.__name__, value)
                continue
            owner = getattr(value, "__module__", None)
            if isinstance(owner, str) and owner != name and owner in modules:
                found.setdefault(owner, modules[owner])
        return found

    def _register_children(self, candidates: dict[str, ModuleType], seen: set[str]) -> set[str]:
        # Unregistered local children get entries of their own, with their
        # local references as children, so evict_tree reaches every level.
        children: set[str] = set()
        for child_name, child in candidates.items():
            if not self._is_local(child):
                continue
            child_path = self.registry.resolve(child.__file__)
            children.add(child_path)
            if child_name in seen or self.registry.get(child_path) is not None:
                continue
            seen.add(child_name)
            grandchildren = self._register_children(
                self._referenced_modules(child_name, child), seen
            )
            grandchildren.discard(child_path)
            self.registry.register(ModuleEntry(child_path, child_name, child, grandchildren))
        return children

    def _is_local(self, module: Optional[ModuleType]) -> bool:
        file = getattr(module, "__file__", None)
        if not file:
            return False
        path = os.path.realpath(file)
        if not path.startswith(self.root + os.sep):
            return False
        return "site-packages" not in path.split(os.sep)
