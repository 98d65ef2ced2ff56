"""Local handler module registry."""

from __future__ import annotations

import importlib
import os
import sys
import threading
from dataclasses import dataclass, field
from types import ModuleType
from typing import Dict, MutableMapping, Optional


@dataclass(slots=True, eq=False)
class ModuleEntry:
    """
    A loaded handler module.

    Attributes:
        path: Canonical file path, the entry's identity
        name: Key of the module in the module table (``sys.modules``)
        module: The executed module instance
        children: Canonical paths of project modules loaded on its behalf
    """
    path: str
    name: str
    module: ModuleType
    children: set[str] = field(default_factory=set)


class ModuleRegistry:
    """
    Thread-safe registry of loaded handler modules.

    Maps canonical file paths to ModuleEntry. Evicting an entry also drops
    its module from the module table so the next import executes source again.
    """

    def __init__(self, modules: Optional[MutableMapping[str, ModuleType]] = None):
        self._entries: Dict[str, ModuleEntry] = {}
        # path as given -> canonical path
        self._resolved: Dict[str, str] = {}
        self.modules = sys.modules if modules is None else modules
        self._lock = threading.RLock()

    def resolve(self, path: str | os.PathLike[str]) -> str:
        """Resolve ``path`` to its canonical form, caching the result."""
        key = os.fspath(path)
        with self._lock:
            canonical = self._resolved.get(key)
            if canonical is None:
                canonical = os.path.realpath(key)
                self._resolved[key] = canonical
            return canonical

    def register(self, entry: ModuleEntry) -> bool:
        """
        Register a module entry, replacing any entry with the same path.

        Returns True if the path was not registered before.
        """
        with self._lock:
            is_new = entry.path not in self._entries
            self._entries[entry.path] = entry
            return is_new

    def get(self, path: str | os.PathLike[str]) -> Optional[ModuleEntry]:
        canonical = self.resolve(path)
        with self._lock:
            return self._entries.get(canonical)

    def evict(self, path: str | os.PathLike[str]) -> bool:
        """
        Remove a single entry (not its children).

        Returns True if an entry was removed, False if none was registered.
        """
        canonical = self.resolve(path)
        with self._lock:
            entry = self._entries.pop(canonical, None)
            if entry is None:
                return False
            if self.modules.get(entry.name) is entry.module:
                del self.modules[entry.name]
            # `from pkg import mod` reads the package attribute before sys.modules.
            parent_name, _, attr = entry.name.rpartition(".")
            parent = self.modules.get(parent_name) if parent_name else None
            if parent is not None and getattr(parent, attr, None) is entry.module:
                delattr(parent, attr)
            return True

    def evict_tree(self, path: str | os.PathLike[str]) -> list[str]:
        """
        Remove an entry and everything reachable through its children.

        Descendants go first, the root last. Returns the evicted paths in
        eviction order; empty if ``path`` was not registered.
        """
        canonical = self.resolve(path)
        evicted: list[str] = []
        with self._lock:
            self._evict_tree(canonical, set(), evicted)
        return evicted

    def _evict_tree(self, path: str, seen: set[str], evicted: list[str]) -> None:
        if path in seen:
            return
        seen.add(path)
        entry = self._entries.get(path)
        if entry is None:
            return
        for child in sorted(entry.children):
            self._evict_tree(child, seen, evicted)
        if self.evict(path):
            evicted.append(path)

    def forget_resolutions(self, fragment: str | os.PathLike[str]) -> int:
        """Drop cached resolutions whose key contains ``fragment``."""
        fragment = os.fspath(fragment)
        with self._lock:
            stale = [key for key in self._resolved if fragment in key]
            for key in stale:
                del self._resolved[key]
            return len(stale)

    def registered(self) -> list[str]:
        """Return list of all registered paths."""
        with self._lock:
            return list(self._entries.keys())

    def clear(self) -> None:
        with self._lock:
            for path in list(self._entries):
                self.evict(path)
            self._resolved.clear()


def purge(path: str | os.PathLike[str], registry: Optional[ModuleRegistry] = None) -> bool:
    """
    Evict a handler module and its transitive children.

    After a purge the next load of ``path`` executes current source and yields
    a fresh module object. Purging a path that was never loaded is a no-op.
    Returns True if anything was evicted.
    """
    registry = registry if registry is not None else _global_registry
    if registry.get(path) is None:
        return False
    registry.evict_tree(path)
    registry.forget_resolutions(path)
    importlib.invalidate_caches()
    return True


# Global registry instance
_global_registry = ModuleRegistry()


def default_registry() -> ModuleRegistry:
    return _global_registry


def register(entry: ModuleEntry) -> bool:
    """Register a module entry globally."""
    return _global_registry.register(entry)


def evict(path: str | os.PathLike[str]) -> bool:
    """Evict a single module entry globally."""
    return _global_registry.evict(path)


def evict_tree(path: str | os.PathLike[str]) -> list[str]:
    """Evict a module entry and its children globally."""
    return _global_registry.evict_tree(path)


def registered() -> list[str]:
    """Get list of all registered module paths."""
    return _global_registry.registered()
