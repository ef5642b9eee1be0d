"""Module graph data model and queries."""

from .model import ExternalModule, Module, ModuleGraph
from .patterns import PatternSet, compile_selector

__all__ = [
    "Module",
    "ExternalModule",
    "ModuleGraph",
    "PatternSet",
    "compile_selector",
]
