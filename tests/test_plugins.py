"""Tests for the plugin pipeline."""

import asyncio

import pytest

from scanner.errors import PluginHookError
from scanner.plugins import (
    CONTINUE,
    SKIP,
    UNRESOLVED,
    Plugin,
    PluginPipeline,
    Resolved,
    Rewrite,
)


class RecordingPlugin(Plugin):
    """Records every hook call into a shared log."""
    
    def __init__(self, name, log, action=CONTINUE, resolution=UNRESOLVED):
        self.name = name
        self.log = log
        self.action = action
        self.resolution = resolution
    
    def start(self, entrypoints, base_path, export_conditions):
        self.log.append((self.name, "start"))
    
    def handle_import(self, source, importer, importee):
        self.log.append((self.name, "handle_import", importee))
        return self.action
    
    def resolve(self, importee, importer, export_conditions, resolver_options):
        self.log.append((self.name, "resolve", importee))
        return self.resolution
    
    def end(self, graph):
        self.log.append((self.name, "end"))


def _handle_import(pipeline, importee="./a.js"):
    return asyncio.run(pipeline.handle_import(source="", importer="index.js", importee=importee))


def _resolve(pipeline, importee="./a.js"):
    return asyncio.run(pipeline.resolve(
        importee=importee,
        importer="/repo/index.js",
        export_conditions=["node", "import"],
        resolver_options={},
    ))


class TestHandleImport:
    """Tests for handle_import dispatch."""
    
    def test_continue_keeps_specifier(self):
        log = []
        pipeline = PluginPipeline([RecordingPlugin("one", log), RecordingPlugin("two", log)])
        
        assert _handle_import(pipeline) == "./a.js"
        assert log == [("one", "handle_import", "./a.js"), ("two", "handle_import", "./a.js")]
    
    def test_rewrite_is_seen_by_later_hooks(self):
        log = []
        pipeline = PluginPipeline([
            RecordingPlugin("one", log, action=Rewrite("./b.js")),
            RecordingPlugin("two", log),
        ])
        
        assert _handle_import(pipeline) == "./b.js"
        assert log[1] == ("two", "handle_import", "./b.js")
    
    def test_skip_short_circuits(self):
        log = []
        pipeline = PluginPipeline([
            RecordingPlugin("one", log, action=SKIP),
            RecordingPlugin("two", log),
        ])
        
        assert _handle_import(pipeline) is None
        assert log == [("one", "handle_import", "./a.js")]
    
    def test_none_means_continue(self):
        class Quiet(Plugin):
            name = "quiet"
            
            def handle_import(self, source, importer, importee):
                return None
        
        assert _handle_import(PluginPipeline([Quiet()])) == "./a.js"
    
    def test_async_hook(self):
        class AsyncRewrite(Plugin):
            name = "async-rewrite"
            
            async def handle_import(self, source, importer, importee):
                await asyncio.sleep(0)
                return Rewrite(importee.replace(".ts", ".js"))
        
        assert _handle_import(PluginPipeline([AsyncRewrite()]), "./a.ts") == "./a.js"
    
    def test_invalid_result(self):
        class Loose(Plugin):
            name = "loose"
            
            def handle_import(self, source, importer, importee):
                return "./other.js"
        
        with pytest.raises(PluginHookError) as exc_info:
            _handle_import(PluginPipeline([Loose()]))
        assert exc_info.value.plugin_name == "loose"
        assert exc_info.value.hook_name == "handle_import"


class TestResolve:
    """Tests for resolve dispatch."""
    
    def test_unresolved(self):
        log = []
        pipeline = PluginPipeline([RecordingPlugin("one", log)])
        
        assert _resolve(pipeline) is None
    
    def test_first_resolution_wins(self):
        log = []
        pipeline = PluginPipeline([
            RecordingPlugin("one", log),
            RecordingPlugin("two", log, resolution=Resolved("/repo/two.js")),
            RecordingPlugin("three", log, resolution=Resolved("/repo/three.js")),
        ])
        
        assert _resolve(pipeline) == "/repo/two.js"
        assert ("three", "resolve", "./a.js") not in log
    
    def test_empty_location_is_ignored(self):
        log = []
        pipeline = PluginPipeline([
            RecordingPlugin("one", log, resolution=Resolved("")),
            RecordingPlugin("two", log, resolution=Resolved("/repo/two.js")),
        ])
        
        assert _resolve(pipeline) == "/repo/two.js"
    
    def test_invalid_result(self):
        class Loose(Plugin):
            name = "loose"
            
            def resolve(self, importee, importer, export_conditions, resolver_options):
                return "/repo/a.js"
        
        with pytest.raises(PluginHookError):
            _resolve(PluginPipeline([Loose()]))


class TestLifecycleHooks:
    """Tests for start, analyze and end dispatch."""
    
    def test_registration_order(self):
        log = []
        pipeline = PluginPipeline()
        pipeline.register(RecordingPlugin("one", log))
        pipeline.register(RecordingPlugin("two", log))
        
        asyncio.run(pipeline.start(entrypoints=["a.js"], base_path="/repo", export_conditions=[]))
        asyncio.run(pipeline.end(graph=None))
        
        assert log == [("one", "start"), ("two", "start"), ("one", "end"), ("two", "end")]
        assert len(pipeline) == 2
    
    def test_default_hooks_are_noops(self):
        class Empty(Plugin):
            name = "empty"
        
        pipeline = PluginPipeline([Empty()])
        
        asyncio.run(pipeline.start(entrypoints=[], base_path="/repo", export_conditions=[]))
        asyncio.run(pipeline.analyze(module=None, graph=None, source="", imports=[]))
        asyncio.run(pipeline.end(graph=None))
        assert _handle_import(pipeline) == "./a.js"
        assert _resolve(pipeline) is None
    
    def test_duck_typed_plugin(self):
        """Test that any object with a name and some hooks works."""
        calls = []
        
        class Duck:
            name = "duck"
            
            def end(self, graph):
                calls.append(graph)
        
        asyncio.run(PluginPipeline([Duck()]).end(graph="graph"))
        
        assert calls == ["graph"]
    
    def test_failure_is_wrapped(self):
        class Broken(Plugin):
            name = "broken"
            
            async def analyze(self, module, graph, source, imports):
                raise RuntimeError("boom")
        
        with pytest.raises(PluginHookError) as exc_info:
            asyncio.run(PluginPipeline([Broken()]).analyze(module=None, graph=None, source="", imports=[]))
        
        error = exc_info.value
        assert error.plugin_name == "broken"
        assert error.hook_name == "analyze"
        assert isinstance(error.__cause__, RuntimeError)
        assert "boom" in str(error)
