"""Graph builder that orchestrates module traversal and graph construction."""

import asyncio
import inspect
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Set, Union

from modgraph.model import ExternalModule, Module, ModuleGraph
from .config import BuildConfig, make_config
from .errors import (
    ConfigurationError,
    EntrypointResolutionError,
    LexError,
    ReadError,
    ResolutionError,
)
from .filters import ImportFilters
from .lexer import ImportLexer, ImportOccurrence
from .plugins import PluginPipeline
from .reader import FileReader
from .resolver import NodeResolver, location_to_path
from .specifiers import (
    RELATIVE_PREFIXES,
    get_package_name,
    is_bare_module_specifier,
    is_builtin_module,
)


logger = logging.getLogger(__name__)

NODE_MODULES = "node_modules"


@dataclass
class _Traversal:
    """Mutable state owned by a single build."""
    
    graph: ModuleGraph
    config: BuildConfig
    base_path: Path
    filters: ImportFilters
    pipeline: PluginPipeline
    conditions: List[str]
    resolver_options: Dict[str, Any]
    pending: Dict[str, None] = field(default_factory=dict)  # ordered set
    scanned: Set[str] = field(default_factory=set)
    
    def enqueue(self, path: str) -> None:
        if path not in self.scanned:
            self.pending.setdefault(path, None)
    
    def dequeue(self) -> str:
        path = next(iter(self.pending))
        del self.pending[path]
        self.scanned.add(path)
        return path


class GraphBuilder:
    """
    Builds a ModuleGraph by following imports from one or more entrypoints.
    
    The lexer, resolver and reader are collaborators; each may be replaced
    by any object with the same method, sync or async:
    
    - ``lexer.parse(source) -> LexResult``
    - ``resolver.resolve(specifier, from_dir, export_conditions, options) -> path``
    - ``reader.read(path) -> str``
    """
    
    def __init__(self, lexer=None, resolver=None, reader=None):
        self.lexer = lexer or ImportLexer()
        self.resolver = resolver or NodeResolver()
        self.reader = reader or FileReader()
    
    async def build(
        self,
        entrypoints: Union[str, Sequence[str]],
        config: Optional[BuildConfig] = None,
        **options: Any,
    ) -> ModuleGraph:
        """
        Traverse every module reachable from the entrypoints.
        
        Args:
            entrypoints: One entrypoint or a list of them, as paths relative
                to the base path.
            config: Build configuration. Keyword options may be given
                instead, to build one.
        
        Returns:
            The completed ModuleGraph.
        
        Raises:
            ConfigurationError: If the configuration is contradictory.
            EntrypointResolutionError: If an entrypoint cannot be resolved.
            PluginHookError: If any plugin hook fails.
            ReadError: If a module cannot be read (unless skipping).
        """
        config = make_config(config, **options)
        config.validate()
        
        if isinstance(entrypoints, str):
            entrypoints = [entrypoints]
        entrypoints = list(entrypoints)
        if not entrypoints:
            raise ConfigurationError("At least one entrypoint is required")
        
        base_path = Path(config.base_path).resolve()
        state = _Traversal(
            graph=ModuleGraph(str(base_path), []),
            config=config,
            base_path=base_path,
            filters=ImportFilters.from_config(config),
            pipeline=PluginPipeline(config.plugins),
            conditions=list(config.conditions),
            resolver_options=config.resolver_config(),
        )
        
        await self._seed(state, entrypoints)
        
        await state.pipeline.start(
            entrypoints=entrypoints,
            base_path=str(base_path),
            export_conditions=state.conditions,
        )
        
        while state.pending:
            await self._scan(state, state.dequeue())
        
        await state.pipeline.end(graph=state.graph)
        
        logger.debug("Built %r", state.graph)
        return state.graph
    
    async def _seed(self, state: _Traversal, entrypoints: List[str]) -> None:
        """Resolve entrypoints and add them as unscanned modules."""
        for entrypoint in entrypoints:
            specifier = _ensure_relative(entrypoint)
            try:
                location = await self._default_resolve(state, specifier, state.base_path)
            except ResolutionError as e:
                raise EntrypointResolutionError(entrypoint, e) from e
            
            path = _relative_path(location, state.base_path)
            if path in state.graph.entrypoints:
                continue
            state.graph.entrypoints.append(path)
            state.graph.add_module(_new_module(location, path))
            state.enqueue(path)
    
    async def _scan(self, state: _Traversal, path: str) -> None:
        """Read and lex a module, process its imports, then finalize it."""
        module = state.graph.modules[path]
        logger.debug("Scanning %s", path)
        
        try:
            source = await _maybe_await(self.reader.read(module.pathname))
            try:
                lexed = await _maybe_await(self.lexer.parse(source))
            except Exception as e:
                raise LexError(path, e) from e
        except (ReadError, LexError) as e:
            if state.config.on_read_error == "skip":
                logger.warning("Skipping %s: %s", path, e)
                return
            raise
        
        for occurrence in lexed.imports:
            await self._process_import(state, path, source, occurrence)
        
        module.source = source
        module.imports = list(lexed.imports)
        module.facade = lexed.facade
        module.has_module_syntax = lexed.has_module_syntax
        
        external = state.graph.get_external_module(path)
        if external is not None:
            external.source = source
            external.imports = module.imports
            external.facade = lexed.facade
            external.has_module_syntax = lexed.has_module_syntax
        
        await state.pipeline.analyze(
            module=module,
            graph=state.graph,
            source=source,
            imports=lexed.imports,
        )
    
    async def _process_import(
        self,
        state: _Traversal,
        importer: str,
        source: str,
        occurrence: ImportOccurrence,
    ) -> None:
        """Filter, rewrite, resolve and record a single import occurrence."""
        original = occurrence.specifier
        if not original:
            logger.debug("%s: skipping non-literal import at %d", importer, occurrence.start)
            return
        
        if occurrence.is_dynamic and state.config.ignore_dynamic_imports:
            logger.debug("%s: skipping dynamic import %r", importer, original)
            return
        
        filters = state.filters
        if not filters.is_foreign(original) and not filters.allows_external(original):
            logger.debug("%s: external policy drops %r", importer, original)
            return
        
        importee = await state.pipeline.handle_import(
            source=source,
            importer=importer,
            importee=original,
        )
        if importee is None:
            logger.debug("%s: plugin skipped %r", importer, original)
            return
        
        if is_builtin_module(importee):
            return
        
        virtual = filters.is_virtual(importee)
        if virtual:
            location = None
            dependency = importee
        else:
            importer_module = state.graph.modules[importer]
            try:
                location = await self._resolve(state, importee, importer_module)
            except ResolutionError as e:
                logger.warning('Failed to resolve dependency "%s" from %s: %s', importee, importer, e)
                state.graph.add_unresolved(importer, importee)
                return
            dependency = _relative_path(location, state.base_path)
        
        if filters.is_excluded(dependency):
            logger.debug("%s: excluded %s", importer, dependency)
            return
        
        graph = state.graph
        if virtual:
            module = graph.add_module(Module(href=dependency, pathname=dependency, path=dependency))
        else:
            module = graph.add_module(_new_module(location, dependency))
        
        if is_bare_module_specifier(original):
            external = graph.external_modules.get(module.href)
            if external is None:
                external = ExternalModule(
                    href=module.href,
                    pathname=module.pathname,
                    path=module.path,
                    package_root=module.package_root,
                    package=get_package_name(original),
                    import_specifier=original,
                )
                graph.external_modules[module.href] = external
            external.add_importer(importer)
        
        if not virtual and not (filters.is_foreign(importee) or filters.is_foreign(dependency)):
            state.enqueue(dependency)
        
        graph.add_edge(importer, dependency)
        module.add_importer(importer)
    
    async def _resolve(self, state: _Traversal, importee: str, importer: Module) -> Path:
        """Resolve through plugins first, then the default resolver."""
        location = await state.pipeline.resolve(
            importee=importee,
            importer=importer.pathname,
            export_conditions=state.conditions,
            resolver_options=state.resolver_options,
        )
        if location is not None:
            path = location_to_path(location)
            if not path.is_absolute():
                path = state.base_path / path
            return Path(os.path.normpath(path))
        
        return await self._default_resolve(state, importee, Path(importer.pathname).parent)
    
    async def _default_resolve(self, state: _Traversal, specifier: str, from_dir: Path) -> Path:
        location = await _maybe_await(
            self.resolver.resolve(specifier, from_dir, state.conditions, state.resolver_options)
        )
        return Path(location_to_path(location))


async def build(
    entrypoints: Union[str, Sequence[str]],
    config: Optional[BuildConfig] = None,
    **options: Any,
) -> ModuleGraph:
    """Build a module graph with the default lexer, resolver and reader."""
    return await GraphBuilder().build(entrypoints, config, **options)


def build_graph(
    entrypoints: Union[str, Sequence[str]],
    config: Optional[BuildConfig] = None,
    **options: Any,
) -> ModuleGraph:
    """
    Build a module graph from synchronous code.
    
    Runs ``build`` on a new event loop; use ``build`` directly from
    async code.
    """
    return asyncio.run(build(entrypoints, config, **options))


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def _ensure_relative(entrypoint: str) -> str:
    if os.path.isabs(entrypoint) or entrypoint.startswith(RELATIVE_PREFIXES):
        return entrypoint
    return "./" + entrypoint


def _relative_path(location: Path, base_path: Path) -> str:
    """Get the base-relative, ``/``-separated path of a location."""
    return Path(os.path.relpath(location, base_path)).as_posix()


def _package_root(location: Path) -> Optional[str]:
    """
    Get the root directory of the installed package containing a location.
    
    ``/app/node_modules/@scope/pkg/dist/x.js`` -> ``/app/node_modules/@scope/pkg``
    """
    parts = location.as_posix().split("/")
    if NODE_MODULES not in parts:
        return None
    
    index = len(parts) - 1 - parts[::-1].index(NODE_MODULES)
    rest = parts[index + 1:]
    if not rest:
        return None
    
    size = 2 if rest[0].startswith("@") and len(rest) > 1 else 1
    return "/".join(parts[:index + 1 + size])


def _new_module(location: Path, path: str) -> Module:
    return Module(
        href=location.as_uri(),
        pathname=str(location),
        path=path,
        package_root=_package_root(location),
    )
