"""Scanner module for module traversal and import graph construction."""

from .builder import GraphBuilder, build, build_graph
from .config import BuildConfig, ExternalPolicy
from .errors import (
    ConfigurationError,
    EntrypointResolutionError,
    LexError,
    ModuleGraphError,
    PluginHookError,
    ReadError,
    ResolutionError,
)
from .lexer import ImportLexer, ImportOccurrence, LexResult
from .plugins import CONTINUE, SKIP, UNRESOLVED, Plugin, PluginPipeline, Resolved, Rewrite
from .reader import FileReader
from .resolver import NodeResolver

__all__ = [
    "GraphBuilder",
    "build",
    "build_graph",
    "BuildConfig",
    "ExternalPolicy",
    "ModuleGraphError",
    "ConfigurationError",
    "EntrypointResolutionError",
    "LexError",
    "PluginHookError",
    "ReadError",
    "ResolutionError",
    "ImportLexer",
    "ImportOccurrence",
    "LexResult",
    "Plugin",
    "PluginPipeline",
    "CONTINUE",
    "SKIP",
    "Rewrite",
    "UNRESOLVED",
    "Resolved",
    "FileReader",
    "NodeResolver",
]
