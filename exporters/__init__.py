"""Exporters for converting a module graph to output formats."""

from .json_exporter import to_json

__all__ = ["to_json"]
