"""Shared fixtures."""

import sys

import pytest

from fndev import ModuleRegistry, Request


@pytest.fixture
def anyio_backend():
    return "asyncio"


async def _iter_chunks(parts):
    for part in parts:
        yield part


@pytest.fixture
def make_request():
    """Build a Request whose body arrives as the given chunks."""
    def factory(method="GET", target="/", headers=None, body=b"", chunks=None):
        parts = chunks if chunks is not None else ([body] if body else [])
        return Request(
            method=method,
            target=target,
            headers=dict(headers or {}),
            stream=_iter_chunks(parts),
        )
    return factory


@pytest.fixture
def registry():
    """Isolated module registry; evicts whatever the test loaded."""
    reg = ModuleRegistry()
    yield reg
    reg.clear()


@pytest.fixture
def project(tmp_path, monkeypatch):
    """Empty project tree with api/, public/ and fnlib/ on a private sys.path."""
    monkeypatch.setattr(sys, "path", list(sys.path))
    monkeypatch.syspath_prepend(str(tmp_path))
    (tmp_path / "api").mkdir()
    (tmp_path / "public").mkdir()
    (tmp_path / "fnlib").mkdir()
    (tmp_path / "fnlib" / "__init__.py").write_text("")
    yield tmp_path
    for name in [n for n in sys.modules if n == "fnlib" or n.startswith("fnlib.")]:
        del sys.modules[name]
