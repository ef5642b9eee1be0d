"""Exceptions raised while building a module graph."""

from typing import Optional


class ModuleGraphError(Exception):
    """Base class for every error raised by the graph builder."""


class ConfigurationError(ModuleGraphError):
    """Raised for contradictory or invalid build options, before any file is read."""


class PluginHookError(ModuleGraphError):
    """
    Raised when a plugin hook fails.
    
    Carries the plugin name and hook name so the failure can be attributed.
    The original exception is chained as ``__cause__``.
    """
    
    def __init__(self, plugin_name: str, hook_name: str, original: BaseException):
        self.plugin_name = plugin_name
        self.hook_name = hook_name
        self.original = original
        super().__init__(
            f'Plugin "{plugin_name}" failed in hook "{hook_name}": {original}'
        )


class ResolutionError(ModuleGraphError):
    """Raised by a resolver when a specifier cannot be mapped to a location."""
    
    def __init__(self, specifier: str, importer: Optional[str] = None, reason: str = ""):
        self.specifier = specifier
        self.importer = importer
        self.reason = reason
        message = f'Cannot resolve "{specifier}"'
        if importer:
            message += f" from {importer}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class EntrypointResolutionError(ModuleGraphError):
    """Raised when an entrypoint cannot be resolved. Always fatal."""
    
    def __init__(self, entrypoint: str, original: BaseException):
        self.entrypoint = entrypoint
        self.original = original
        super().__init__(f'Cannot resolve entrypoint "{entrypoint}": {original}')


class ReadError(ModuleGraphError):
    """Raised when a module's source cannot be read."""
    
    def __init__(self, path: str, original: BaseException):
        self.path = path
        self.original = original
        super().__init__(f"Cannot read {path}: {original}")


class LexError(ModuleGraphError):
    """Raised when a module's source cannot be lexed."""
    
    def __init__(self, path: str, original: BaseException):
        self.path = path
        self.original = original
        super().__init__(f"Cannot lex {path}: {original}")
