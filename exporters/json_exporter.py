"""JSON exporter for module graphs (machine-friendly format)."""

import json
from typing import Any, Dict, List

from modgraph.model import ModuleGraph


def to_json(
    graph: ModuleGraph,
    indent: int = 2,
    include_unresolved: bool = True,
) -> str:
    """
    Convert a module graph to JSON format.
    
    Args:
        graph: The module graph to export.
        indent: JSON indentation level.
        include_unresolved: If True, include imports that failed to resolve.
    
    Returns:
        JSON string representation of the graph.
    """
    modules: List[Dict[str, Any]] = []
    for path in sorted(graph.modules):
        module = graph.modules[path]
        modules.append({
            "path": module.path,
            "href": module.href,
            "facade": module.facade,
            "hasModuleSyntax": module.has_module_syntax,
            "imports": [_import_to_dict(occurrence) for occurrence in module.imports],
            "importedBy": list(module.imported_by),
            "packageRoot": module.package_root,
        })
    
    edges: List[Dict[str, Any]] = []
    for importer, dependency in graph.iter_edges():
        edges.append({"source": importer, "target": dependency})
    
    if include_unresolved:
        for importer, specifier in graph.iter_unresolved():
            edges.append({"source": importer, "target": specifier, "unresolved": True})
    
    external: List[Dict[str, Any]] = []
    for href in sorted(graph.external_modules):
        module = graph.external_modules[href]
        external.append({
            "path": module.path,
            "package": module.package,
            "importSpecifier": module.import_specifier,
        })
    
    data: Dict[str, Any] = {
        "entrypoints": list(graph.entrypoints),
        "modules": modules,
        "edges": edges,
        "externalModules": external,
    }
    
    return json.dumps(data, indent=indent)


def _import_to_dict(occurrence: Any) -> Dict[str, Any]:
    return {
        "specifier": occurrence.specifier,
        "start": occurrence.start,
        "end": occurrence.end,
        "dynamic": occurrence.is_dynamic,
    }

