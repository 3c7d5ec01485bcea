"""Pytest configuration and fixtures for Component Insight tests."""

import json
import re
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Dict, Generator

import pytest

from component_insight.scanner import SourceIndex, normalize_path

LIB_ROOT = "/lib"

LIBRARY_SUMMARY = {
    "name": "sample-ui",
    "displayName": "Sample UI",
    "description": "Buttons, dialogs and form inputs for internal tools.",
    "useCases": ["admin consoles", "settings pages", "internal dashboards"],
}


class FakeProvider:
    """Answers library summaries and component analyses with canned payloads."""

    def __init__(self):
        self.calls = []

    def generate(self, messages):
        self.calls.append(messages)
        if messages[-1]["content"].startswith("Package manifest:"):
            return "```json\n" + json.dumps(LIBRARY_SUMMARY) + "\n```"
        match = re.search(r"Component name: (\S+)", messages[-1]["content"])
        name = match.group(1) if match else "Unknown"
        payload = {
            "name": name,
            "displayName": f"{name} component",
            "functions": ["render"],
            "useCases": ["testing"],
            "uiFeatures": "plain",
            "isContainer": False,
            "properties": [{"name": "children", "type": "ReactNode", "required": False}],
        }
        return "Here you go:\n```json\n" + json.dumps(payload) + "\n```"


@pytest.fixture(autouse=True)
def _mock_llm_provider(monkeypatch):
    """Replace every provider with :class:`FakeProvider` so no test touches the network."""
    monkeypatch.setattr(
        "component_insight.llm.ComponentLLM._create_provider",
        lambda self: FakeProvider(),
    )


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def sample_library_path() -> Path:
    """Path to the sample component library."""
    return Path(__file__).parent / "fixtures" / "sample_library"


@pytest.fixture
def temp_config(temp_dir: Path, monkeypatch) -> Path:
    """Point the TOML config at a temporary file."""
    config_file = temp_dir / "config.toml"
    monkeypatch.setattr("component_insight.config_manager.BASE_DIR", temp_dir)
    monkeypatch.setattr("component_insight.config_manager.CONFIG_FILE", config_file)
    return config_file


def lib_path(rel: str) -> str:
    """Absolute, normalized path of *rel* inside the in-memory library."""
    return normalize_path(f"{LIB_ROOT}/{rel}")


@pytest.fixture
def make_index() -> Callable[[Dict[str, str]], SourceIndex]:
    """Build a :class:`SourceIndex` from ``{relative path: source}`` without touching disk."""

    def _build(sources: Dict[str, str]) -> SourceIndex:
        return SourceIndex.from_sources({lib_path(rel): text for rel, text in sources.items()})

    return _build


@pytest.fixture
def path_of() -> Callable[[str], str]:
    """Map a relative library path to the key used by :func:`make_index`."""
    return lib_path
