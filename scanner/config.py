"""Build configuration for module graph traversal."""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from modgraph.patterns import PatternLike
from .errors import ConfigurationError


DEFAULT_EXPORT_CONDITIONS = ("node", "import")

READ_ERROR_POLICIES = {"abort", "skip"}


@dataclass
class ExternalPolicy:
    """
    Policy for bare (package) specifiers.
    
    ``ignore`` drops every bare specifier. ``include`` keeps only the listed
    packages; ``exclude`` drops the listed packages. Entries are package
    names or glob patterns over package names.
    """
    
    ignore: bool = False
    include: List[PatternLike] = field(default_factory=list)
    exclude: List[PatternLike] = field(default_factory=list)


@dataclass
class BuildConfig:
    """Options recognized by the graph builder."""
    
    base_path: str = field(default_factory=os.getcwd)
    export_conditions: List[str] = field(default_factory=lambda: list(DEFAULT_EXPORT_CONDITIONS))
    external: ExternalPolicy = field(default_factory=ExternalPolicy)
    exclude: List[PatternLike] = field(default_factory=list)
    foreign_modules: List[PatternLike] = field(default_factory=list)
    virtual_modules: List[PatternLike] = field(default_factory=list)
    ignore_dynamic_imports: bool = False
    plugins: List[Any] = field(default_factory=list)
    preserve_symlinks: bool = False
    resolver_options: Dict[str, Any] = field(default_factory=dict)
    on_read_error: str = "abort"
    
    @classmethod
    def from_options(cls, **options: Any) -> "BuildConfig":
        """
        Create a config from keyword options.
        
        ``external`` may be given as an ExternalPolicy or a plain dict.
        """
        external = options.pop("external", None)
        try:
            if isinstance(external, dict):
                external = ExternalPolicy(**external)
            config = cls(**options)
        except TypeError as e:
            raise ConfigurationError(f"Invalid build option: {e}") from e
        if external is not None:
            config.external = external
        return config
    
    def validate(self) -> None:
        """
        Check the configuration for contradictions.
        
        Raises:
            ConfigurationError: If options conflict or are malformed.
        """
        if self.external.ignore and self.external.include:
            raise ConfigurationError(
                "External policy 'ignore' cannot be combined with a non-empty 'include' list"
            )
        
        if self.on_read_error not in READ_ERROR_POLICIES:
            raise ConfigurationError(
                f"Unknown on_read_error policy {self.on_read_error!r}; "
                f"expected one of {sorted(READ_ERROR_POLICIES)}"
            )
        
        seen: set = set()
        for plugin in self.plugins:
            name = getattr(plugin, "name", None)
            if not name or not isinstance(name, str):
                raise ConfigurationError(f"Plugin {plugin!r} must have a non-empty name")
            if name in seen:
                raise ConfigurationError(f'Duplicate plugin name "{name}"')
            seen.add(name)
    
    @property
    def conditions(self) -> Sequence[str]:
        """Return export conditions without duplicates, in the given order."""
        return list(dict.fromkeys(self.export_conditions))
    
    def resolver_config(self) -> Dict[str, Any]:
        """Return the options passed through to resolvers and resolve hooks."""
        options = dict(self.resolver_options)
        options.setdefault("base_path", self.base_path)
        options.setdefault("preserve_symlinks", self.preserve_symlinks)
        return options


def make_config(config: Optional[BuildConfig] = None, **options: Any) -> BuildConfig:
    """Return ``config`` or build one from keyword options (not both)."""
    if config is not None and options:
        raise ConfigurationError("Pass either a BuildConfig or keyword options, not both")
    if config is None:
        config = BuildConfig.from_options(**options)
    return config
