"""Resolution of import specifiers to module files, following Node.js rules."""

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union
from urllib.parse import urlparse
from urllib.request import url2pathname

from .errors import ResolutionError
from .specifiers import is_url_specifier, split_package_specifier


DEFAULT_EXTENSIONS = (".js", ".mjs", ".cjs", ".jsx", ".ts", ".mts", ".cts", ".tsx", ".json")
DEFAULT_MAIN_FIELDS = ("main",)


def location_to_path(location: Union[str, Path]) -> Path:
    """Convert a filesystem path or ``file://`` URL to a Path."""
    if isinstance(location, Path):
        return location
    if location.startswith("file:"):
        return Path(url2pathname(urlparse(location).path))
    return Path(location)


class NodeResolver:
    """
    Resolves specifiers the way Node.js locates ES modules.
    
    Tries, in order:
    1. ``alias`` prefixes, rewriting the specifier.
    2. ``file://`` URLs and absolute paths.
    3. Relative paths against the importing directory: the exact file,
       then with each extension, then as a directory.
    4. ``#`` package imports via the nearest ``package.json`` ``imports``.
    5. Bare specifiers via ``node_modules`` directories up the tree,
       honouring ``package.json`` ``exports`` and then main fields.
    """
    
    def __init__(
        self,
        extensions: Optional[Sequence[str]] = None,
        main_fields: Optional[Sequence[str]] = None,
        alias: Optional[Mapping[str, str]] = None,
        preserve_symlinks: bool = False,
    ):
        self.extensions = tuple(extensions) if extensions is not None else DEFAULT_EXTENSIONS
        self.main_fields = tuple(main_fields) if main_fields is not None else DEFAULT_MAIN_FIELDS
        self.alias = dict(alias or {})
        self.preserve_symlinks = preserve_symlinks
    
    def with_options(self, options: Optional[Mapping[str, Any]]) -> "NodeResolver":
        """Return a resolver with per-build options layered over this one."""
        if not options:
            return self
        return NodeResolver(
            extensions=options.get("extensions", self.extensions),
            main_fields=options.get("main_fields", self.main_fields),
            alias={**self.alias, **options.get("alias", {})},
            preserve_symlinks=options.get("preserve_symlinks", self.preserve_symlinks),
        )
    
    def resolve(
        self,
        specifier: str,
        from_dir: Union[str, Path],
        export_conditions: Sequence[str] = ("node", "import"),
        options: Optional[Mapping[str, Any]] = None,
    ) -> Path:
        """
        Resolve a specifier to an absolute file path.
        
        Args:
            specifier: The import specifier.
            from_dir: Directory of the importing module.
            export_conditions: Condition names used for ``exports`` maps.
            options: Per-call resolver options (see ``with_options``).
        
        Returns:
            Absolute path of the resolved file.
        
        Raises:
            ResolutionError: If the specifier cannot be resolved.
        """
        resolver = self.with_options(options)
        from_dir = Path(from_dir)
        conditions = list(export_conditions)
        
        found = resolver._resolve(resolver._apply_alias(specifier), from_dir, conditions)
        if found is None:
            raise ResolutionError(specifier, str(from_dir), "module not found")
        
        if resolver.preserve_symlinks:
            return Path(os.path.abspath(found))
        return Path(os.path.realpath(found))
    
    def _apply_alias(self, specifier: str) -> str:
        for key in sorted(self.alias, key=len, reverse=True):
            if specifier == key or specifier.startswith(key.rstrip("/") + "/"):
                return self.alias[key] + specifier[len(key):]
        return specifier
    
    def _resolve(self, specifier: str, from_dir: Path, conditions: List[str]) -> Optional[Path]:
        if specifier.startswith("file:"):
            return self._resolve_file(location_to_path(specifier))
        if is_url_specifier(specifier):
            raise ResolutionError(specifier, str(from_dir), "unsupported URL scheme")
        
        if specifier.startswith("/"):
            return self._resolve_file_or_directory(Path(specifier))
        if specifier in (".", "..") or specifier.startswith(("./", "../")):
            return self._resolve_file_or_directory(from_dir / specifier)
        if specifier.startswith("#"):
            return self._resolve_package_import(specifier, from_dir, conditions)
        
        return self._resolve_package(specifier, from_dir, conditions)
    
    def _resolve_package(self, specifier: str, from_dir: Path, conditions: List[str]) -> Optional[Path]:
        name, subpath = split_package_specifier(specifier)
        
        for directory in [from_dir, *from_dir.parents]:
            if directory.name == "node_modules":
                continue
            package_dir = directory / "node_modules" / name
            if not package_dir.is_dir():
                continue
            
            manifest = _read_manifest(package_dir)
            if manifest.get("exports") is not None:
                target = resolve_exports(manifest["exports"], subpath, conditions)
                if target is None:
                    raise ResolutionError(
                        specifier, str(from_dir),
                        f'subpath "{subpath}" is not exported by {name}',
                    )
                return self._resolve_file(package_dir / target)
            
            if subpath == ".":
                return self._resolve_directory(package_dir)
            return self._resolve_file_or_directory(package_dir / subpath)
        
        return None
    
    def _resolve_package_import(self, specifier: str, from_dir: Path, conditions: List[str]) -> Optional[Path]:
        for directory in [from_dir, *from_dir.parents]:
            if not (directory / "package.json").is_file():
                continue
            imports = _read_manifest(directory).get("imports")
            if not isinstance(imports, dict):
                return None
            target = _match_subpath_map(imports, specifier, conditions)
            if target is None:
                return None
            if target.startswith("./"):
                return self._resolve_file(directory / target)
            return self._resolve_package(target, directory, conditions)
        return None
    
    def _resolve_file(self, path: Path) -> Optional[Path]:
        if path.is_file():
            return path
        if not path.name:
            return None
        for ext in self.extensions:
            candidate = path.with_name(path.name + ext)
            if candidate.is_file():
                return candidate
        return None
    
    def _resolve_directory(self, directory: Path) -> Optional[Path]:
        if (directory / "package.json").is_file():
            manifest = _read_manifest(directory)
            for field in self.main_fields:
                main = manifest.get(field)
                if isinstance(main, str) and main:
                    found = self._resolve_file(directory / main) or self._resolve_index(directory / main)
                    if found is not None:
                        return found
        return self._resolve_index(directory)
    
    def _resolve_index(self, directory: Path) -> Optional[Path]:
        if not directory.is_dir():
            return None
        for ext in self.extensions:
            candidate = directory / f"index{ext}"
            if candidate.is_file():
                return candidate
        return None
    
    def _resolve_file_or_directory(self, path: Path) -> Optional[Path]:
        found = self._resolve_file(path)
        if found is None and path.is_dir():
            found = self._resolve_directory(path)
        return found


def resolve_exports(exports: Any, subpath: str, conditions: Sequence[str]) -> Optional[str]:
    """
    Resolve a package subpath against a ``package.json`` ``exports`` field.
    
    Args:
        exports: The ``exports`` value (string, list, or object).
        subpath: Subpath relative to the package, ``"."`` or ``"./x"``.
        conditions: Active condition names; ``default`` always applies.
    
    Returns:
        The package-relative target (``"./..."``), or None if not exported.
    """
    if isinstance(exports, (str, list)) or (
        isinstance(exports, dict) and not any(key.startswith(".") for key in exports)
    ):
        exports = {".": exports}
    if not isinstance(exports, dict):
        return None
    return _match_subpath_map(exports, subpath, conditions)


def _match_subpath_map(mapping: Dict[str, Any], subpath: str, conditions: Sequence[str]) -> Optional[str]:
    if subpath in mapping and "*" not in subpath:
        return _resolve_target(mapping[subpath], conditions, None)
    
    best_key = None
    best_match = None
    for key in mapping:
        if "*" in key:
            prefix, _, suffix = key.partition("*")
            if (
                subpath.startswith(prefix)
                and subpath.endswith(suffix)
                and len(subpath) >= len(prefix) + len(suffix)
            ):
                if best_key is None or len(prefix) > len(best_key.partition("*")[0]):
                    best_key = key
                    best_match = subpath[len(prefix):len(subpath) - len(suffix)]
        elif key.endswith("/") and subpath.startswith(key):
            if best_key is None or len(key) > len(best_key):
                best_key = key
                best_match = None
    
    if best_key is None:
        return None
    if best_match is None:
        target = _resolve_target(mapping[best_key], conditions, None)
        return target + subpath[len(best_key):] if target is not None else None
    return _resolve_target(mapping[best_key], conditions, best_match)


def _resolve_target(target: Any, conditions: Sequence[str], pattern_match: Optional[str]) -> Optional[str]:
    if isinstance(target, str):
        if pattern_match is not None:
            target = target.replace("*", pattern_match)
        return target
    
    if isinstance(target, list):
        for item in target:
            resolved = _resolve_target(item, conditions, pattern_match)
            if resolved is not None:
                return resolved
        return None
    
    if isinstance(target, dict):
        for condition, value in target.items():
            if condition == "default" or condition in conditions:
                resolved = _resolve_target(value, conditions, pattern_match)
                if resolved is not None:
                    return resolved
        return None
    
    return None


def _read_manifest(directory: Path) -> Dict[str, Any]:
    manifest_path = directory / "package.json"
    if not manifest_path.is_file():
        return {}
    try:
        data = json.loads(manifest_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ResolutionError(str(directory), None, f"invalid package.json: {e}") from e
    return data if isinstance(data, dict) else {}
