"""Handler module registry and loader."""

from .loader import HandlerLoader
from .local import ModuleEntry, ModuleRegistry, evict, evict_tree, purge, register, registered

__all__ = [
    "HandlerLoader",
    "ModuleEntry",
    "ModuleRegistry",
    "evict",
    "evict_tree",
    "purge",
    "register",
    "registered",
]
