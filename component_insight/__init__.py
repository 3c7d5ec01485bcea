"""Component Insight: trace component implementations in JS/TS libraries and analyze them with an LLM."""

__version__ = "0.3.0"
