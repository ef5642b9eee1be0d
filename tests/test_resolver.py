"""Tests for specifier classification and module resolution."""

import json
import os

import pytest

from scanner.errors import ResolutionError
from scanner.resolver import NodeResolver, location_to_path, resolve_exports
from scanner.specifiers import (
    get_package_name,
    is_bare_module_specifier,
    is_builtin_module,
    is_scoped_package,
    split_package_specifier,
)


class TestSpecifiers:
    """Tests for specifier classification."""
    
    def test_bare_specifiers(self):
        assert is_bare_module_specifier("foo")
        assert is_bare_module_specifier("foo/bar.js")
        assert is_bare_module_specifier("@scope/pkg")
        assert not is_bare_module_specifier("./foo.js")
        assert not is_bare_module_specifier("../foo.js")
        assert not is_bare_module_specifier("/abs/foo.js")
        assert not is_bare_module_specifier("#internal")
        assert not is_bare_module_specifier("https://esm.sh/lit")
        assert not is_bare_module_specifier("")
        assert not is_bare_module_specifier(None)
    
    def test_scoped(self):
        assert is_scoped_package("@scope/pkg/sub.js")
        assert not is_scoped_package("pkg")
    
    def test_package_name(self):
        assert get_package_name("foo/bar.js") == "foo"
        assert get_package_name("foo") == "foo"
        assert get_package_name("@scope/pkg/sub/file.js") == "@scope/pkg"
        assert split_package_specifier("@scope/pkg") == ("@scope/pkg", ".")
        assert split_package_specifier("foo/bar.js") == ("foo", "./bar.js")
    
    def test_builtins(self):
        assert is_builtin_module("fs")
        assert is_builtin_module("fs/promises")
        assert is_builtin_module("node:path")
        assert is_builtin_module("node:test")
        assert not is_builtin_module("lit")


class TestRelativeResolution:
    """Tests for relative and absolute specifiers."""
    
    def test_exact_file(self, write_tree):
        root = write_tree({"src/a.js": "", "lib/b.js": ""})
        
        resolved = NodeResolver().resolve("../lib/b.js", root / "src")
        
        assert resolved == root / "lib" / "b.js"
    
    def test_extension_lookup(self, write_tree):
        root = write_tree({"b.ts": ""})
        
        assert NodeResolver().resolve("./b", root) == root / "b.ts"
    
    def test_custom_extensions(self, write_tree):
        root = write_tree({"b.vue": ""})
        
        with pytest.raises(ResolutionError):
            NodeResolver().resolve("./b", root)
        assert NodeResolver(extensions=[".vue"]).resolve("./b", root) == root / "b.vue"
    
    def test_directory_index(self, write_tree):
        root = write_tree({"lib/index.js": ""})
        
        assert NodeResolver().resolve("./lib", root) == root / "lib" / "index.js"
    
    def test_directory_main(self, write_tree):
        root = write_tree({
            "lib/package.json": json.dumps({"main": "./dist/lib.js"}),
            "lib/dist/lib.js": "",
        })
        
        assert NodeResolver().resolve("./lib", root) == root / "lib" / "dist" / "lib.js"
    
    def test_absolute_and_file_url(self, write_tree):
        root = write_tree({"a.js": ""})
        target = root / "a.js"
        
        assert NodeResolver().resolve(str(target), "/") == target
        assert NodeResolver().resolve(target.as_uri(), "/") == target
    
    def test_missing(self, write_tree):
        root = write_tree({"a.js": ""})
        
        with pytest.raises(ResolutionError) as exc_info:
            NodeResolver().resolve("./missing.js", root)
        assert exc_info.value.specifier == "./missing.js"
    
    def test_unsupported_url(self, tmp_path):
        with pytest.raises(ResolutionError):
            NodeResolver().resolve("https://esm.sh/lit", tmp_path)
    
    def test_alias(self, write_tree):
        root = write_tree({"src/components/button.js": ""})
        resolver = NodeResolver(alias={"@app": "./src"})
        
        assert resolver.resolve("@app/components/button.js", root) == root / "src" / "components" / "button.js"
    
    def test_options_override(self, write_tree):
        root = write_tree({"src/x.js": ""})
        
        resolved = NodeResolver().resolve("~/x.js", root, options={"alias": {"~": "./src"}})
        
        assert resolved == root / "src" / "x.js"
    
    def test_symlinks(self, write_tree):
        root = write_tree({"real/a.js": ""})
        os.symlink(root / "real" / "a.js", root / "link.js")
        
        assert NodeResolver().resolve("./link.js", root) == root / "real" / "a.js"
        assert NodeResolver(preserve_symlinks=True).resolve("./link.js", root) == root / "link.js"


class TestPackageResolution:
    """Tests for bare specifiers and package.json handling."""
    
    def test_main_field(self, write_tree):
        root = write_tree({
            "node_modules/foo/package.json": json.dumps({"main": "main.js"}),
            "node_modules/foo/main.js": "",
        })
        
        assert NodeResolver().resolve("foo", root) == root / "node_modules" / "foo" / "main.js"
    
    def test_subpath_without_exports(self, write_tree):
        root = write_tree({"node_modules/foo/bar.js": ""})
        
        assert NodeResolver().resolve("foo/bar.js", root) == root / "node_modules" / "foo" / "bar.js"
    
    def test_walks_up_directories(self, write_tree):
        root = write_tree({"node_modules/foo/index.js": "", "src/deep/a.js": ""})
        
        resolved = NodeResolver().resolve("foo", root / "src" / "deep")
        
        assert resolved == root / "node_modules" / "foo" / "index.js"
    
    def test_scoped_package(self, write_tree):
        root = write_tree({"node_modules/@scope/pkg/index.js": ""})
        
        assert NodeResolver().resolve("@scope/pkg", root) == root / "node_modules" / "@scope" / "pkg" / "index.js"
    
    def test_exports_conditions(self, write_tree):
        root = write_tree({
            "node_modules/pkg/package.json": json.dumps({
                "exports": {
                    ".": {"import": "./esm.js", "require": "./cjs.js"},
                },
            }),
            "node_modules/pkg/esm.js": "",
            "node_modules/pkg/cjs.js": "",
        })
        resolver = NodeResolver()
        
        assert resolver.resolve("pkg", root, ["node", "import"]).name == "esm.js"
        assert resolver.resolve("pkg", root, ["node", "require"]).name == "cjs.js"
    
    def test_exports_not_exported(self, write_tree):
        root = write_tree({
            "node_modules/pkg/package.json": json.dumps({"exports": {".": "./index.js"}}),
            "node_modules/pkg/index.js": "",
            "node_modules/pkg/secret.js": "",
        })
        
        with pytest.raises(ResolutionError):
            NodeResolver().resolve("pkg/secret.js", root)
    
    def test_package_imports(self, write_tree):
        root = write_tree({
            "package.json": json.dumps({"imports": {"#internal/*": "./src/internal/*.js"}}),
            "src/internal/util.js": "",
        })
        
        resolved = NodeResolver().resolve("#internal/util", root / "src")
        
        assert resolved == root / "src" / "internal" / "util.js"
    
    def test_missing_package(self, tmp_path):
        with pytest.raises(ResolutionError):
            NodeResolver().resolve("nope", tmp_path)


class TestExportsMap:
    """Tests for package.json exports matching."""
    
    def test_string_sugar(self):
        assert resolve_exports("./index.js", ".", ["import"]) == "./index.js"
        assert resolve_exports("./index.js", "./sub", ["import"]) is None
    
    def test_condition_sugar(self):
        exports = {"import": "./esm.js", "default": "./cjs.js"}
        
        assert resolve_exports(exports, ".", ["import"]) == "./esm.js"
        assert resolve_exports(exports, ".", ["browser"]) == "./cjs.js"
    
    def test_nested_conditions(self):
        exports = {".": {"node": {"import": "./node.mjs", "default": "./node.cjs"}, "default": "./browser.js"}}
        
        assert resolve_exports(exports, ".", ["node", "import"]) == "./node.mjs"
        assert resolve_exports(exports, ".", ["node"]) == "./node.cjs"
        assert resolve_exports(exports, ".", ["browser"]) == "./browser.js"
    
    def test_subpath_patterns(self):
        exports = {
            "./utils/*": "./src/utils/*.js",
            "./utils/internal/*": None,
            "./features/*.js": "./dist/features/*.js",
        }
        
        assert resolve_exports(exports, "./utils/a", []) == "./src/utils/a.js"
        assert resolve_exports(exports, "./utils/internal/x", []) is None
        assert resolve_exports(exports, "./features/x.js", []) == "./dist/features/x.js"
    
    def test_folder_mapping(self):
        assert resolve_exports({"./lib/": "./dist/lib/"}, "./lib/a.js", []) == "./dist/lib/a.js"
    
    def test_array_fallback(self):
        exports = {".": [{"worker": "./worker.js"}, "./index.js"]}
        
        assert resolve_exports(exports, ".", ["import"]) == "./index.js"


class TestLocations:
    """Tests for converting resolved locations to paths."""
    
    def test_file_url(self, tmp_path):
        assert location_to_path(tmp_path.as_uri()) == tmp_path
    
    def test_plain_path(self, tmp_path):
        assert location_to_path(str(tmp_path)) == tmp_path
        assert location_to_path(tmp_path) == tmp_path
