"""Tests for ModuleRegistry and purge."""

import os
import types

import pytest

from fndev import ModuleEntry, ModuleRegistry, purge
from fndev.registry import local


def entry(path, name, children=()):
    return ModuleEntry(path=path, name=name, module=types.ModuleType(name), children=set(children))


class TestModuleRegistry:
    """Test ModuleRegistry functionality against an injected module table."""

    def setup_method(self):
        self.modules = {}
        self.registry = ModuleRegistry(modules=self.modules)

    def add(self, path, name, children=()):
        e = entry(path, name, children)
        self.registry.register(e)
        self.modules[name] = e.module
        return e

    def test_register_and_get(self):
        e = entry("/p/api/a.py", "a")
        assert self.registry.register(e) is True
        assert self.registry.get("/p/api/a.py") is e

        # Re-registering the same path replaces the entry
        e2 = entry("/p/api/a.py", "a")
        assert self.registry.register(e2) is False
        assert self.registry.get("/p/api/a.py") is e2

    def test_get_unknown_path(self):
        assert self.registry.get("/p/api/missing.py") is None

    def test_resolve_is_canonical_and_cached(self, tmp_path):
        target = tmp_path / "real.py"
        target.write_text("")
        link = tmp_path / "link.py"
        link.symlink_to(target)

        assert self.registry.resolve(link) == os.path.realpath(target)
        assert self.registry.resolve(str(tmp_path / "." / "real.py")) == os.path.realpath(target)

        e = entry(os.path.realpath(target), "real")
        self.registry.register(e)
        assert self.registry.get(link) is e

    def test_evict_removes_entry_and_module(self):
        self.add("/p/api/a.py", "a")
        assert self.registry.evict("/p/api/a.py") is True
        assert self.registry.get("/p/api/a.py") is None
        assert "a" not in self.modules

        # Evicting again is a no-op
        assert self.registry.evict("/p/api/a.py") is False

    def test_evict_leaves_foreign_module_alone(self):
        self.add("/p/api/a.py", "a")
        replacement = types.ModuleType("a")
        self.modules["a"] = replacement
        self.registry.evict("/p/api/a.py")
        assert self.modules["a"] is replacement

    def test_evict_detaches_submodule_from_parent_package(self):
        pkg = self.add("/p/lib/__init__.py", "lib")
        sub = self.add("/p/lib/util.py", "lib.util")
        pkg.module.util = sub.module

        self.registry.evict("/p/lib/util.py")

        assert not hasattr(pkg.module, "util")
        assert self.modules["lib"] is pkg.module

    def test_evict_tree_removes_descendants_first(self):
        self.add("/p/lib/leaf.py", "lib.leaf")
        self.add("/p/lib/mid.py", "lib.mid", children=["/p/lib/leaf.py"])
        self.add("/p/api/a.py", "a", children=["/p/lib/mid.py"])
        self.add("/p/api/b.py", "b")

        evicted = self.registry.evict_tree("/p/api/a.py")

        assert evicted == ["/p/lib/leaf.py", "/p/lib/mid.py", "/p/api/a.py"]
        assert self.registry.registered() == ["/p/api/b.py"]
        assert set(self.modules) == {"b"}

    def test_evict_tree_tolerates_cycles_and_dangling_children(self):
        self.add("/p/lib/x.py", "x", children=["/p/lib/y.py"])
        self.add("/p/lib/y.py", "y", children=["/p/lib/x.py", "/p/lib/gone.py"])

        evicted = self.registry.evict_tree("/p/lib/x.py")

        assert sorted(evicted) == ["/p/lib/x.py", "/p/lib/y.py"]
        assert self.registry.registered() == []

    def test_forget_resolutions_by_substring(self):
        self.registry.resolve("/p/api/a.py")
        self.registry.resolve("/p/api/ab.py")
        self.registry.resolve("/p/api/b.py")

        assert self.registry.forget_resolutions("/p/api/a") == 2
        assert "/p/api/b.py" in self.registry._resolved
        assert "/p/api/a.py" not in self.registry._resolved

    def test_registered(self):
        self.add("/p/api/a.py", "a")
        self.add("/p/api/b.py", "b")
        assert sorted(self.registry.registered()) == ["/p/api/a.py", "/p/api/b.py"]

    def test_clear(self):
        self.add("/p/api/a.py", "a")
        self.registry.clear()
        assert self.registry.registered() == []
        assert self.modules == {}


class TestPurge:
    def setup_method(self):
        self.modules = {}
        self.registry = ModuleRegistry(modules=self.modules)

    def test_purge_unknown_path_is_noop(self):
        assert purge("/p/api/never.py", self.registry) is False
        assert self.registry.registered() == []

    def test_purge_evicts_tree_and_resolution_cache(self):
        child = entry("/p/lib/util.py", "lib.util")
        root = entry("/p/api/a.py", "a", children=[child.path])
        for e in (child, root):
            self.registry.register(e)
            self.modules[e.name] = e.module

        assert purge("/p/api/a.py", self.registry) is True

        assert self.registry.registered() == []
        assert self.modules == {}
        assert not any("/p/api/a.py" in key for key in self.registry._resolved)

    def test_purge_is_idempotent(self):
        self.registry.register(entry("/p/api/a.py", "a"))
        assert purge("/p/api/a.py", self.registry) is True
        assert purge("/p/api/a.py", self.registry) is False


class TestGlobalRegistry:
    """The module-level helpers operate on the process-wide registry."""

    def setup_method(self):
        local._global_registry.clear()

    def teardown_method(self):
        local._global_registry.clear()

    def test_global_helpers(self):
        e = entry("/nowhere/api/g.py", "_fndev_test_global")
        assert local.register(e) is True
        assert local.registered() == ["/nowhere/api/g.py"]
        assert local.evict_tree("/nowhere/api/g.py") == ["/nowhere/api/g.py"]
        assert local.evict("/nowhere/api/g.py") is False
        assert local.default_registry() is local._global_registry
