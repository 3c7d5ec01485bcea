"""Configuration paths and analysis limits for Component Insight."""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(os.environ.get("INSIGHT_HOME", str(Path.home() / ".component-insight"))).expanduser()
TEMP_DIR = BASE_DIR / "checkouts"

# Scanner defaults
SUPPORTED_EXTENSIONS = [".tsx", ".ts", ".jsx", ".js"]
EXCLUDE_DIRS = ["node_modules", "dist", "build", ".git", "coverage", "docs"]
EXCLUDE_PATTERNS = ["*.test.*", "*.spec.*", "*.stories.*", "*.d.ts"]
MAX_FILE_SIZE_KB = 500

# Entry files tried (relative to the scanned directory) when none is given
ENTRY_CANDIDATES = [
    "src/index.ts",
    "src/index.tsx",
    "src/index.js",
    "src/index.jsx",
    "index.ts",
    "index.js",
]

# Resolution limits
MAX_TRACE_DEPTH = 10
MAX_CONTEXT_DEPTH = 3
MAX_DEPS_PER_NODE = 5
MAX_SNIPPETS = 8
MAX_INCLUDE_CHARS = 8000
MAX_SNIPPET_CHARS = 3000

# Load configuration from TOML file (if available)
try:
    from .config_manager import load_analysis_config, load_config
    _toml_config = load_config()
    _analysis_config = load_analysis_config()
except ImportError:
    _toml_config = {}
    _analysis_config = {}

# Batch scheduling
MAX_COMPONENTS = int(_analysis_config.get("max_components", 100))
BATCH_DELAY_SECONDS = float(_analysis_config.get("batch_delay", 0.8))
ENTRY_FILE = _analysis_config.get("entry_file", "")
COMPONENT_PROMPT = _analysis_config.get("prompt", "")

# LLM Provider Configuration: loaded from ~/.component-insight/config.toml (set via `insight set-llm`)
LLM_PROVIDER = _toml_config.get("provider", "openai")
LLM_API_KEY = _toml_config.get("api_key", os.environ.get("OPENAI_API_KEY", ""))
LLM_MODEL = _toml_config.get("model", "gpt-4o")
LLM_ENDPOINT = _toml_config.get("endpoint", "https://api.openai.com/v1/chat/completions")
LLM_TIMEOUT = int(_toml_config.get("timeout", 60))


def ensure_base_dirs() -> None:
    """Create base directories for local storage if needed."""
    BASE_DIR.mkdir(parents=True, exist_ok=True)
    TEMP_DIR.mkdir(parents=True, exist_ok=True)
