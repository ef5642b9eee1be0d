"""Inclusion and exclusion rules for imports, compiled once per build."""

from dataclasses import dataclass

from modgraph.patterns import PatternSet
from .config import BuildConfig
from .specifiers import get_package_name, is_bare_module_specifier


@dataclass(frozen=True)
class ImportFilters:
    """
    Compiled pattern sets for one build.
    
    - ``exclude`` is matched against resolved dependency paths.
    - ``foreign`` is matched against specifiers and resolved paths; foreign
      modules become graph nodes but are never scanned.
    - ``virtual`` is matched against specifiers; virtual modules are not
      resolved, their identity is the specifier text.
    - ``external_include``/``external_exclude`` are matched against the
      whole root package name of bare specifiers.
    """
    
    exclude: PatternSet
    foreign: PatternSet
    virtual: PatternSet
    ignore_external: bool
    external_include: PatternSet
    external_exclude: PatternSet
    
    @classmethod
    def from_config(cls, config: BuildConfig) -> "ImportFilters":
        return cls(
            exclude=PatternSet(config.exclude),
            foreign=PatternSet(config.foreign_modules),
            virtual=PatternSet(config.virtual_modules),
            ignore_external=config.external.ignore,
            external_include=PatternSet(config.external.include, anchored=True),
            external_exclude=PatternSet(config.external.exclude, anchored=True),
        )
    
    def is_excluded(self, path: str) -> bool:
        return self.exclude.matches(path)
    
    def is_foreign(self, value: str) -> bool:
        return self.foreign.matches(value)
    
    def is_virtual(self, specifier: str) -> bool:
        return self.virtual.matches(specifier)
    
    def allows_external(self, specifier: str) -> bool:
        """
        Apply the external dependency policy to a specifier.
        
        Returns:
            False if the specifier is bare and the policy drops it.
        """
        if not is_bare_module_specifier(specifier):
            return True
        if self.ignore_external:
            return False
        
        package = get_package_name(specifier)
        if self.external_exclude and self.external_exclude.matches(package):
            return False
        if self.external_include and not self.external_include.matches(package):
            return False
        return True
