"""Plugin interface and ordered hook dispatch."""

import inspect
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from .errors import PluginHookError


class _Marker:
    """A named singleton used for argument-less hook results."""
    
    def __init__(self, name: str):
        self._name = name
    
    def __repr__(self) -> str:
        return self._name


# handle_import results
CONTINUE = _Marker("CONTINUE")
SKIP = _Marker("SKIP")


@dataclass(frozen=True)
class Rewrite:
    """Replace the import specifier; later hooks and resolution see ``specifier``."""
    
    specifier: str


# resolve results
UNRESOLVED = _Marker("UNRESOLVED")


@dataclass(frozen=True)
class Resolved:
    """A resolve hook result: a filesystem path or a ``file://`` URL."""
    
    location: Union[str, Path]


ImportAction = Union[_Marker, Rewrite]
Resolution = Union[_Marker, Resolved]

HOOK_NAMES = ("start", "handle_import", "resolve", "analyze", "end")


class Plugin:
    """
    Base class for graph builder plugins.
    
    Every hook is optional; the defaults do nothing. Hooks may be plain or
    ``async`` methods. Subclasses must set a unique, non-empty ``name``.
    
    Hook arguments are passed by keyword, and a hook receives only the
    arguments its signature names (all of them if it takes ``**kwargs``).
    ``def analyze(self, module)`` is a valid override.
    """
    
    name: str = ""
    
    def start(self, entrypoints: List[str], base_path: str, export_conditions: List[str]) -> None:
        """Run once, before traversal begins."""
    
    def handle_import(self, source: str, importer: str, importee: str) -> ImportAction:
        """
        Run for every import occurrence found in a scanned module.
        
        Return CONTINUE to pass, SKIP to drop the import entirely, or
        ``Rewrite(specifier)`` to replace the specifier.
        """
        return CONTINUE
    
    def resolve(
        self,
        importee: str,
        importer: str,
        export_conditions: List[str],
        resolver_options: Dict[str, Any],
    ) -> Resolution:
        """Return ``Resolved(location)`` to take over resolution, else UNRESOLVED."""
        return UNRESOLVED
    
    def analyze(self, module: Any, graph: Any, source: str, imports: Sequence[Any]) -> None:
        """Run for every scanned module, after its imports are processed."""
    
    def end(self, graph: Any) -> None:
        """Run once, with the completed graph."""
    
    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class PluginPipeline:
    """
    Ordered dispatch of plugin hooks.
    
    Hooks of one kind run strictly one after another, in registration order.
    Every failure is wrapped in a PluginHookError naming the plugin and hook.
    """
    
    def __init__(self, plugins: Optional[Sequence[Any]] = None):
        self._plugins: List[Any] = list(plugins or [])
    
    @property
    def plugins(self) -> List[Any]:
        """Return the registered plugins in order."""
        return list(self._plugins)
    
    def register(self, plugin: Any) -> None:
        """Append a plugin to the pipeline."""
        self._plugins.append(plugin)
    
    async def start(self, entrypoints: List[str], base_path: str, export_conditions: List[str]) -> None:
        for plugin in self._plugins:
            await self._call(
                plugin, "start",
                entrypoints=entrypoints,
                base_path=base_path,
                export_conditions=export_conditions,
            )
    
    async def handle_import(self, source: str, importer: str, importee: str) -> Optional[str]:
        """
        Run ``handle_import`` hooks.
        
        Returns:
            The (possibly rewritten) specifier, or None if a hook skipped it.
        """
        for plugin in self._plugins:
            result = await self._call(
                plugin, "handle_import",
                source=source,
                importer=importer,
                importee=importee,
            )
            
            if result is None or result is CONTINUE:
                continue
            if result is SKIP:
                return None
            if isinstance(result, Rewrite):
                importee = result.specifier
                continue
            raise PluginHookError(
                _plugin_name(plugin), "handle_import",
                TypeError(f"expected CONTINUE, SKIP or Rewrite, got {result!r}"),
            )
        
        return importee
    
    async def resolve(
        self,
        importee: str,
        importer: str,
        export_conditions: List[str],
        resolver_options: Dict[str, Any],
    ) -> Optional[Union[str, Path]]:
        """
        Run ``resolve`` hooks until one resolves the specifier.
        
        Returns:
            The first resolved location, or None if no hook resolved it.
        """
        for plugin in self._plugins:
            result = await self._call(
                plugin, "resolve",
                importee=importee,
                importer=importer,
                export_conditions=export_conditions,
                resolver_options=resolver_options,
            )
            
            if result is None or result is UNRESOLVED:
                continue
            if isinstance(result, Resolved):
                if result.location:
                    return result.location
                continue
            raise PluginHookError(
                _plugin_name(plugin), "resolve",
                TypeError(f"expected UNRESOLVED or Resolved, got {result!r}"),
            )
        
        return None
    
    async def analyze(self, module: Any, graph: Any, source: str, imports: Sequence[Any]) -> None:
        for plugin in self._plugins:
            await self._call(
                plugin, "analyze",
                module=module,
                graph=graph,
                source=source,
                imports=imports,
            )
    
    async def end(self, graph: Any) -> None:
        for plugin in self._plugins:
            await self._call(plugin, "end", graph=graph)
    
    async def _call(self, plugin: Any, hook_name: str, **kwargs: Any) -> Any:
        hook = getattr(plugin, hook_name, None)
        if hook is None:
            return None
        
        try:
            result = hook(**_accepted_arguments(hook, kwargs))
            if inspect.isawaitable(result):
                result = await result
        except PluginHookError:
            raise
        except Exception as e:
            raise PluginHookError(_plugin_name(plugin), hook_name, e) from e
        
        return result
    
    def __len__(self) -> int:
        return len(self._plugins)


def _plugin_name(plugin: Any) -> str:
    return getattr(plugin, "name", None) or type(plugin).__name__


def _accepted_arguments(hook: Any, kwargs: Dict[str, Any]) -> Dict[str, Any]:
    """Drop keyword arguments the hook does not declare."""
    try:
        parameters = inspect.signature(hook).parameters.values()
    except (TypeError, ValueError):
        return kwargs
    
    names = set()
    for parameter in parameters:
        if parameter.kind is inspect.Parameter.VAR_KEYWORD:
            return kwargs
        if parameter.kind in (inspect.Parameter.POSITIONAL_OR_KEYWORD, inspect.Parameter.KEYWORD_ONLY):
            names.add(parameter.name)
    return {name: value for name, value in kwargs.items() if name in names}
