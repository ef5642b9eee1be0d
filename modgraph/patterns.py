"""Compiled path/specifier patterns (gitignore wildmatch dialect)."""

from typing import Callable, Iterable, List, Optional, Set, Union

from pathspec import GitIgnoreSpec


Predicate = Callable[[str], bool]
PatternLike = Union[str, Predicate]

GLOB_CHARS = frozenset("*?[")


def is_glob(value: str) -> bool:
    """Check if a string contains glob metacharacters."""
    return any(char in GLOB_CHARS for char in value)


class PatternSet:
    """
    A compiled set of glob strings and predicates.
    
    All glob strings are compiled into a single ``GitIgnoreSpec`` once;
    predicates are called in the order given. A value matches the set if
    the compiled glob matches it or any predicate returns a truthy value.
    
    With ``anchored=True`` every pattern must match the whole value: plain
    strings are compared for equality and globs are rooted, so ``lit``
    matches ``lit`` but not ``@acme/lit``. Package names use this mode.
    """
    
    def __init__(self, patterns: Optional[Iterable[PatternLike]] = None, anchored: bool = False):
        globs: List[str] = []
        self._exact: Set[str] = set()
        self._predicates: List[Predicate] = []
        
        for pattern in patterns or ():
            if callable(pattern):
                self._predicates.append(pattern)
            elif isinstance(pattern, str):
                if not pattern:
                    continue
                if not anchored:
                    globs.append(pattern)
                elif is_glob(pattern):
                    globs.append(pattern if pattern.startswith("/") else "/" + pattern)
                else:
                    self._exact.add(pattern)
            else:
                raise TypeError(
                    f"Pattern must be a string or a callable, got {type(pattern).__name__}"
                )
        
        self._globs = tuple(globs)
        self._spec = GitIgnoreSpec.from_lines(globs) if globs else None
    
    def matches(self, value: Optional[str]) -> bool:
        """Check if a value matches any pattern in the set."""
        if not value:
            return False
        if value in self._exact:
            return True
        if self._spec is not None and self._spec.match_file(value):
            return True
        return any(predicate(value) for predicate in self._predicates)
    
    __call__ = matches
    
    def __bool__(self) -> bool:
        return bool(self._globs) or bool(self._exact) or bool(self._predicates)
    
    def __repr__(self) -> str:
        return f"PatternSet(globs={list(self._globs)}, exact={sorted(self._exact)}, predicates={len(self._predicates)})"


def compile_selector(selector: PatternLike) -> Predicate:
    """
    Compile a single selector into a predicate over paths.
    
    A callable is returned unchanged. A string matches itself exactly and,
    if it contains glob metacharacters, anything the glob matches.
    """
    if callable(selector):
        return selector
    if not isinstance(selector, str):
        raise TypeError(
            f"Selector must be a string or a callable, got {type(selector).__name__}"
        )
    
    if not is_glob(selector):
        return lambda value: value == selector
    
    spec = GitIgnoreSpec.from_lines([selector])
    return lambda value: value == selector or spec.match_file(value)
