"""Structured codecs (TOML, JSON, YAML)."""
