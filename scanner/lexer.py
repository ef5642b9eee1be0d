"""Lexer for extracting import occurrences from JavaScript/TypeScript source."""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class ImportOccurrence:
    """
    A single import found in source text.
    
    ``start``/``end`` delimit the specifier text inside its quotes. For a
    dynamic import with a non-literal argument, ``specifier`` is None and
    the offsets delimit the argument expression.
    """
    
    specifier: Optional[str]
    start: int
    end: int
    is_dynamic: bool = False


@dataclass
class LexResult:
    """Imports in source order plus module-level flags."""
    
    imports: List[ImportOccurrence] = field(default_factory=list)
    facade: bool = False
    has_module_syntax: bool = False


# import x from 's' / import {a} from 's' / import * as ns from 's' / import 's'
_STATIC_IMPORT_RE = re.compile(
    r"""(?<![\w$.])import\b\s*(?:[\w$*{][^;'"()]*?\bfrom\s*)?(['"])"""
)

# export * from 's' / export * as ns from 's' / export {a, b} from 's'
_REEXPORT_RE = re.compile(
    r"""(?<![\w$.])export\b\s*(?:type\s+)?(?:\*(?:\s*as\s+[\w$]+)?|\{[^}]*\})\s*from\s*(['"])"""
)

# import(...)
_DYNAMIC_IMPORT_RE = re.compile(r"""(?<![\w$.])import\b\s*\(""")

_IMPORT_META_RE = re.compile(r"""(?<![\w$.])import\b\s*\.\s*meta\b""")

_EXPORT_RE = re.compile(r"""(?<![\w$.])export\b\s*(?:default\b|[\w$]+\s|\{|\*)""")

# Optional import attributes and terminator after a static specifier
_STATEMENT_TAIL_RE = re.compile(r"""\s*(?:(?:with|assert)\s*\{[^}]*\})?\s*;?""")

# Characters after which a '/' starts a regular expression literal
_REGEX_PRECEDERS = set("(,=:[!&|?{};+-*%<>~^")
_REGEX_KEYWORDS = {"return", "typeof", "case", "do", "else", "in", "of", "void", "yield", "await", "delete", "new"}


class ImportLexer:
    """
    Extracts ES module imports from source text.
    
    Comments, regular expression literals and template literals with
    substitutions are blanked before matching, so imports inside them are
    ignored. Offsets always refer to the original source text.
    """
    
    def parse(self, source: str) -> LexResult:
        masked, strings = _mask(source)
        statements: List[Tuple[int, int]] = []
        found: List[ImportOccurrence] = []
        
        for pattern in (_STATIC_IMPORT_RE, _REEXPORT_RE):
            for match in pattern.finditer(masked):
                quote = match.start(1)
                close = strings.get(quote)
                if close is None:
                    continue
                found.append(ImportOccurrence(source[quote + 1:close], quote + 1, close))
                tail = _STATEMENT_TAIL_RE.match(masked, close + 1)
                statements.append((match.start(), tail.end() if tail else close + 1))
        
        for match in _DYNAMIC_IMPORT_RE.finditer(masked):
            found.append(_dynamic_occurrence(source, masked, strings, match.end()))
        
        found.sort(key=lambda occurrence: occurrence.start)
        
        has_module_syntax = bool(
            statements
            or _IMPORT_META_RE.search(masked)
            or _EXPORT_RE.search(masked)
        )
        
        return LexResult(
            imports=found,
            facade=has_module_syntax and _only_statements(masked, statements),
            has_module_syntax=has_module_syntax,
        )


def _dynamic_occurrence(
    source: str,
    masked: str,
    strings: Dict[int, int],
    open_paren: int,
) -> ImportOccurrence:
    """Build the occurrence for an ``import(`` whose paren ends at ``open_paren``."""
    position = open_paren
    while position < len(masked) and masked[position].isspace():
        position += 1
    
    close = strings.get(position)
    if close is not None:
        after = close + 1
        while after < len(masked) and masked[after].isspace():
            after += 1
        if after < len(masked) and masked[after] in "),":
            return ImportOccurrence(source[position + 1:close], position + 1, close, True)
    
    end = masked.find(")", position)
    if end == -1:
        end = len(masked)
    return ImportOccurrence(None, position, end, True)


def _only_statements(masked: str, statements: List[Tuple[int, int]]) -> bool:
    """Check if nothing but the given statement spans (and ``;``) is in the code."""
    chars = list(masked)
    for start, end in statements:
        chars[start:end] = " " * (end - start)
    return not "".join(chars).replace(";", "").strip()


def _mask(source: str) -> Tuple[str, Dict[int, int]]:
    """
    Blank comments and literals that cannot hold import specifiers.
    
    Returns:
        The masked text (same length as ``source``) and a map from the
        index of each string's opening quote to its closing quote. String
        contents are replaced by ``x`` so keywords inside them never match.
    """
    out = list(source)
    strings: Dict[int, int] = {}
    length = len(source)
    i = 0
    
    def blank(start: int, end: int) -> None:
        for k in range(start, end):
            if out[k] != "\n":
                out[k] = " "
    
    while i < length:
        char = source[i]
        nxt = source[i + 1] if i + 1 < length else ""
        
        if char == "/" and nxt == "/":
            end = source.find("\n", i)
            end = length if end == -1 else end
            blank(i, end)
            i = end
        elif char == "/" and nxt == "*":
            end = source.find("*/", i + 2)
            end = length if end == -1 else end + 2
            blank(i, end)
            i = end
        elif char in "'\"":
            end = _string_end(source, i, char)
            if end < length and source[end] == char:
                strings[i] = end
            for k in range(i + 1, min(end, length)):
                out[k] = "x"
            i = end + 1
        elif char == "`":
            end, has_substitutions = _template_end(source, i)
            if has_substitutions:
                blank(i + 1, min(end, length))
            else:
                if end < length and source[end] == "`":
                    strings[i] = end
                for k in range(i + 1, min(end, length)):
                    if out[k] != "\n":
                        out[k] = "x"
            i = end + 1
        elif char == "/" and _starts_regex(source, i):
            end = _regex_end(source, i)
            blank(i + 1, end)
            i = end + 1
        else:
            i += 1
    
    return "".join(out), strings


def _string_end(source: str, start: int, quote: str) -> int:
    i = start + 1
    while i < len(source):
        char = source[i]
        if char == "\\":
            i += 2
            continue
        if char == quote or char == "\n":
            return i
        i += 1
    return len(source)


def _template_end(source: str, start: int) -> Tuple[int, bool]:
    i = start + 1
    depth = 0
    has_substitutions = False
    while i < len(source):
        char = source[i]
        if char == "\\":
            i += 2
            continue
        if depth == 0 and char == "`":
            return i, has_substitutions
        if char == "$" and source[i + 1:i + 2] == "{":
            has_substitutions = True
            depth += 1
            i += 2
            continue
        if depth and char == "}":
            depth -= 1
        i += 1
    return len(source), has_substitutions


def _starts_regex(source: str, slash: int) -> bool:
    i = slash - 1
    while i >= 0 and source[i].isspace():
        i -= 1
    if i < 0:
        return True
    if source[i] in _REGEX_PRECEDERS:
        return True
    end = i + 1
    while i >= 0 and (source[i].isalnum() or source[i] in "_$"):
        i -= 1
    return source[i + 1:end] in _REGEX_KEYWORDS


def _regex_end(source: str, start: int) -> int:
    i = start + 1
    in_class = False
    while i < len(source):
        char = source[i]
        if char == "\\":
            i += 2
            continue
        if char == "\n":
            return i
        if char == "[":
            in_class = True
        elif char == "]":
            in_class = False
        elif char == "/" and not in_class:
            return i
        i += 1
    return len(source)


def parse(source: str) -> LexResult:
    """Parse source text with the default lexer."""
    return ImportLexer().parse(source)
