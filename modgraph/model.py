"""Graph data model for storing module import relationships."""

import posixpath
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Set, Tuple

from .patterns import PatternLike, compile_selector


@dataclass(eq=False)
class Module:
    """
    A module discovered during traversal.
    
    ``path`` is the module's identity: a base-path-relative, ``/``-separated
    path (or, for a virtual module, the specifier text). ``source``,
    ``imports``, ``facade`` and ``has_module_syntax`` are filled in once, when
    the module is scanned. Plugins may attach arbitrary extra attributes.
    """
    
    href: str
    pathname: str
    path: str
    source: str = ""
    imports: List[Any] = field(default_factory=list)
    facade: bool = False
    has_module_syntax: bool = True
    imported_by: List[str] = field(default_factory=list)
    package_root: Optional[str] = None
    
    def add_importer(self, importer: str) -> None:
        """Record a direct importer, keeping each importer at most once."""
        if importer not in self.imported_by:
            self.imported_by.append(importer)


@dataclass(eq=False)
class ExternalModule(Module):
    """A module that was reached through a bare (package) specifier."""
    
    package: str = ""
    import_specifier: str = ""


class ModuleGraph:
    """
    A directed graph of module imports.
    
    Nodes are module paths relative to ``base_path``, and edges represent
    'importer -> dependency' relationships. Per-module metadata lives in
    ``modules``; modules reached through bare specifiers are additionally
    registered in ``external_modules``, keyed by their resolved location.
    Imports that could not be resolved are tracked separately.
    """
    
    def __init__(self, base_path: str, entrypoints: Sequence[str]):
        self.base_path = str(base_path)
        self.entrypoints: List[str] = [posixpath.normpath(e) for e in entrypoints]
        self.modules: Dict[str, Module] = {}
        self.external_modules: Dict[str, ExternalModule] = {}
        self._edges: Dict[str, Set[str]] = {}
        self._unresolved: Dict[str, Set[str]] = {}  # importer -> set of specifiers
    
    @property
    def entrypoint(self) -> Optional[str]:
        """Return the first entrypoint."""
        return self.entrypoints[0] if self.entrypoints else None
    
    @property
    def edges(self) -> Dict[str, Set[str]]:
        """Return adjacency list representation of edges."""
        return {k: v.copy() for k, v in self._edges.items()}
    
    @property
    def unresolved(self) -> Dict[str, Set[str]]:
        """Return unresolved imports (importer -> set of specifier strings)."""
        return {k: v.copy() for k, v in self._unresolved.items()}
    
    @property
    def external_dependencies(self) -> Set[str]:
        """Return the package names of all external modules."""
        return {module.package for module in self.external_modules.values()}
    
    def add_module(self, module: Module) -> Module:
        """Add a module unless one with the same path exists; return the stored one."""
        return self.modules.setdefault(module.path, module)
    
    def add_edge(self, importer: str, dependency: str) -> None:
        """Add a directed edge from importer to dependency."""
        if importer not in self._edges:
            self._edges[importer] = set()
        self._edges[importer].add(dependency)
    
    def has_edges_from(self, importer: str) -> bool:
        """Check if the module has an adjacency entry."""
        return importer in self._edges
    
    def add_unresolved(self, importer: str, specifier: str) -> None:
        """
        Record an import that could not be resolved.
        
        Args:
            importer: The module containing the import.
            specifier: The specifier that failed to resolve.
        """
        if importer not in self._unresolved:
            self._unresolved[importer] = set()
        self._unresolved[importer].add(specifier)
    
    def get_dependencies(self, path: str) -> Set[str]:
        """Get all modules the given module imports directly."""
        return self._edges.get(path, set()).copy()
    
    def get_importers(self, path: str) -> List[str]:
        """Get all modules that import the given module directly."""
        module = self.modules.get(path)
        if module is None:
            return []
        return list(module.imported_by)
    
    def get_external_module(self, path: str) -> Optional[ExternalModule]:
        """Get the external module counterpart of a module path, if any."""
        module = self.modules.get(path)
        if module is None:
            return None
        return self.external_modules.get(module.href)
    
    def get(self, selector: PatternLike) -> Optional[Module]:
        """
        Get the first module matching a selector.
        
        Args:
            selector: An exact module path, a glob pattern, or a predicate
                over module paths.
        
        Returns:
            The first matching Module in discovery order, or None.
        """
        if isinstance(selector, str) and selector in self.modules:
            return self.modules[selector]
        
        matches = compile_selector(selector)
        for path, module in self.modules.items():
            if matches(path):
                return module
        return None
    
    def get_unique_modules(self) -> List[str]:
        """
        Get every module that appears as an edge source or target.
        
        Returns:
            Sorted, deduplicated list of paths relative to the base path.
        """
        unique: Set[str] = set()
        for importer, dependencies in self._edges.items():
            unique.add(importer)
            unique.update(dependencies)
        
        return sorted(self._relative(path) for path in unique)
    
    def find_import_chains(self, target: PatternLike) -> List[List[str]]:
        """
        Find every simple import chain from an entrypoint to a target.
        
        A depth-first search carries the current chain; a module already in
        the chain is never re-entered, and a module matching ``target`` ends
        its branch and records the chain.
        
        Args:
            target: An exact module path, a glob pattern, or a predicate.
        
        Returns:
            List of chains, each running from an entrypoint to a match.
        """
        matches = compile_selector(target)
        chains: List[List[str]] = []
        
        def _dfs(module: str, chain: List[str]) -> None:
            if matches(module):
                chains.append(chain)
                return
            
            for dependency in sorted(self._edges.get(module, ())):
                if dependency not in chain:
                    _dfs(dependency, chain + [dependency])
        
        for entrypoint in dict.fromkeys(self.entrypoints):
            _dfs(entrypoint, [entrypoint])
        
        return chains
    
    def iter_edges(self) -> Iterator[Tuple[str, str]]:
        """Iterate over all edges as (importer, dependency) tuples."""
        for importer in sorted(self._edges):
            for dependency in sorted(self._edges[importer]):
                yield importer, dependency
    
    def iter_unresolved(self) -> Iterator[Tuple[str, str]]:
        """Iterate over all unresolved imports as (importer, specifier) tuples."""
        for importer in sorted(self._unresolved):
            for specifier in sorted(self._unresolved[importer]):
                yield importer, specifier
    
    def _relative(self, path: str) -> str:
        """Normalize a module path relative to the base path."""
        if path in self.modules and self.modules[path].href == path:
            return path  # virtual
        joined = posixpath.join(Path(self.base_path).as_posix(), path)
        return posixpath.relpath(posixpath.normpath(joined), Path(self.base_path).as_posix())
    
    def __len__(self) -> int:
        """Return the number of modules in the graph."""
        return len(self.modules)
    
    def __contains__(self, path: str) -> bool:
        """Check if a module is in the graph."""
        return path in self.modules
    
    def __repr__(self) -> str:
        edge_count = sum(len(d) for d in self._edges.values())
        unresolved_count = sum(len(s) for s in self._unresolved.values())
        return (
            f"ModuleGraph(modules={len(self.modules)}, edges={edge_count}, "
            f"external={len(self.external_modules)}, unresolved={unresolved_count})"
        )
