"""Shared fixtures for module graph tests."""

import textwrap
from pathlib import Path
from typing import Dict

import pytest


@pytest.fixture
def write_tree(tmp_path):
    """Return a function that writes ``{relative_path: source}`` under a temp root."""
    
    def _write(files: Dict[str, str]) -> Path:
        for rel_path, content in files.items():
            path = tmp_path / rel_path
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(textwrap.dedent(content), encoding="utf-8")
        return tmp_path.resolve()
    
    return _write
