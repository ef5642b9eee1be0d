"""Classification helpers for import specifiers."""

from typing import Optional


# Node.js built-in modules, without the "node:" scheme.
BUILTIN_MODULES = frozenset({
    "_http_agent", "_http_client", "_http_common", "_http_incoming",
    "_http_outgoing", "_http_server", "_stream_duplex", "_stream_passthrough",
    "_stream_readable", "_stream_transform", "_stream_wrap", "_stream_writable",
    "_tls_common", "_tls_wrap",
    "assert", "assert/strict", "async_hooks", "buffer", "child_process",
    "cluster", "console", "constants", "crypto", "dgram", "diagnostics_channel",
    "dns", "dns/promises", "domain", "events", "fs", "fs/promises", "http",
    "http2", "https", "inspector", "inspector/promises", "module", "net", "os",
    "path", "path/posix", "path/win32", "perf_hooks", "process", "punycode",
    "querystring", "readline", "readline/promises", "repl", "stream",
    "stream/consumers", "stream/promises", "stream/web", "string_decoder",
    "sys", "timers", "timers/promises", "tls", "trace_events", "tty", "url",
    "util", "util/types", "v8", "vm", "wasi", "worker_threads", "zlib",
})

BUILTIN_SCHEME = "node:"
SCOPE_MARKER = "@"
RELATIVE_PREFIXES = ("./", "../", "/")


def is_builtin_module(specifier: str) -> bool:
    """Check if a specifier names a platform built-in (``fs``, ``node:path``...)."""
    if specifier.startswith(BUILTIN_SCHEME):
        return True
    return specifier in BUILTIN_MODULES


def is_bare_module_specifier(specifier: Optional[str]) -> bool:
    """
    Check if a specifier is a bare module specifier (a package lookup).
    
    Anything that starts with a letter or the scope marker qualifies;
    relative and absolute paths, URLs, and
    ``#``-prefixed package imports do not.
    """
    if not specifier:
        return False
    cleaned = specifier.replace("'", "")
    if not cleaned:
        return False
    if is_url_specifier(cleaned):
        return False
    first = cleaned[0]
    return first == SCOPE_MARKER or (first.isascii() and first.isalpha())


def is_scoped_package(specifier: str) -> bool:
    """Check if a specifier names a scoped package (``@scope/name``)."""
    return specifier.startswith(SCOPE_MARKER)


def is_url_specifier(specifier: str) -> bool:
    """Check if a specifier is an absolute URL (``file:``, ``https:``, ``data:``...)."""
    head, sep, _ = specifier.partition(":")
    return bool(sep) and len(head) > 1 and head.isalpha()


def get_package_name(specifier: str) -> str:
    """
    Get the root package name of a bare specifier.
    
    ``@scope/pkg/sub/file.js`` -> ``@scope/pkg``; ``pkg/sub.js`` -> ``pkg``.
    """
    parts = specifier.split("/")
    if is_scoped_package(specifier) and len(parts) > 1:
        return "/".join(parts[:2])
    return parts[0]


def split_package_specifier(specifier: str):
    """Split a bare specifier into ``(package_name, subpath)``; subpath starts with ``.``."""
    name = get_package_name(specifier)
    rest = specifier[len(name):]
    return name, "." + rest if rest else "."
