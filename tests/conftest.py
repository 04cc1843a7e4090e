"""Shared fixtures for typedbundle tests."""

from __future__ import annotations

import importlib.util
import sys
from pathlib import Path
from types import ModuleType
from typing import Callable, Iterator

import pytest

from typedbundle.runtime import reset_resolvers


@pytest.fixture(autouse=True)
def fresh_resolvers():
    """Isolate the process-wide resolver registry between tests."""
    reset_resolvers()
    yield
    reset_resolvers()


@pytest.fixture
def positional_catalogs() -> dict[str, dict[str, str]]:
    """Default + French positional catalogs."""
    return {
        "": {
            "welcome.message": "Hello {0} {1}",
            "goodbye.message": "Bye {0}",
            "app.title": "Inventory",
        },
        "fr": {
            "welcome.message": "Bonjour {0} {1}",
            "goodbye.message": "Au revoir {0}",
        },
    }


@pytest.fixture
def named_catalogs() -> dict[str, dict[str, str]]:
    """Default + French named catalogs with reordered placeholders."""
    return {
        "": {"welcome.message": "Hello {firstName} {lastName}"},
        "fr": {"welcome.message": "Bonjour {lastName} {firstName}"},
    }


@pytest.fixture
def catalog_dir(tmp_path: Path) -> Path:
    """Directory with a properties bundle in three locales."""
    directory = tmp_path / "i18n"
    directory.mkdir()
    (directory / "messages.properties").write_text(
        "# Default catalog\n"
        "welcome.message = Hello {0} {1}\n"
        "goodbye.message = Bye {0}\n"
        "app.title = Inventory\n",
        encoding="utf-8",
    )
    (directory / "messages_fr.properties").write_text(
        "welcome.message = Bonjour {0} {1}\n"
        "goodbye.message = Au revoir {0}\n",
        encoding="utf-8",
    )
    (directory / "messages_fr_CA.properties").write_text(
        "goodbye.message = Salut {0}\n",
        encoding="utf-8",
    )
    return directory


@pytest.fixture
def load_module() -> Iterator[Callable[[Path], ModuleType]]:
    """Import a generated module from a file path."""
    loaded: list[str] = []

    def _load(path: Path) -> ModuleType:
        name = f"generated_{path.stem}_{len(loaded)}"
        spec = importlib.util.spec_from_file_location(name, path)
        assert spec is not None and spec.loader is not None
        module = importlib.util.module_from_spec(spec)
        sys.modules[name] = module
        spec.loader.exec_module(module)
        loaded.append(name)
        return module

    yield _load

    for name in loaded:
        sys.modules.pop(name, None)
