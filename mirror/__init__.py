"""Typed value trees for dataclasses, with JSON, YAML and binary formats and SQL statement building."""

__version__ = "0.1.0"

__all__ = ["value", "scalars", "codec", "json_format", "yaml_format", "binary_format", "sql"]