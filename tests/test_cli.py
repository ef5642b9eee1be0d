"""Tests for the command line interface."""

import json

import pytest

from cli import main, split_entrypoints


TREE = {
    "a.js": "import './b.js';\nimport './c.js';\nimport 'foo';",
    "b.js": "import './c.js';",
    "c.js": "",
    "node_modules/foo/index.js": "",
}


class TestEntrypoints:
    """Tests for entrypoint list parsing."""
    
    def test_split(self):
        assert split_entrypoints("a.js, ./b.js,../c.js,,") == ["./a.js", "./b.js", "../c.js"]


class TestCommands:
    """Tests for the CLI subcommands."""
    
    def test_list(self, write_tree, capsys):
        root = write_tree(TREE)
        
        assert main(["list", "a.js", "--base-path", str(root)]) == 0
        
        lines = capsys.readouterr().out.splitlines()
        assert lines == ["a.js", "b.js", "c.js", "node_modules/foo/index.js"]
    
    def test_list_ignore_external(self, write_tree, capsys):
        root = write_tree(TREE)
        
        assert main(["list", "a.js", "--base-path", str(root), "--ignore-external"]) == 0
        
        assert capsys.readouterr().out.splitlines() == ["a.js", "b.js", "c.js"]
    
    def test_chains(self, write_tree, capsys):
        root = write_tree(TREE)
        
        assert main(["chains", "a.js", "c.js", "--base-path", str(root)]) == 0
        
        output = capsys.readouterr().out
        assert "Chain 1:\na.js\nb.js\nc.js\n" in output
        assert "Chain 2:\na.js\nc.js\n" in output
    
    def test_find(self, write_tree, capsys):
        root = write_tree(TREE)
        
        assert main(["find", "a.js", "node_modules/**", "--base-path", str(root)]) == 0
        
        assert capsys.readouterr().out.strip() == "node_modules/foo/index.js"
    
    def test_find_nothing(self, write_tree, capsys):
        root = write_tree(TREE)
        
        assert main(["find", "a.js", "*.css", "--base-path", str(root)]) == 1
        assert "No module matches" in capsys.readouterr().err
    
    def test_graph_json(self, write_tree, capsys):
        root = write_tree(TREE)
        
        assert main(["graph", "a.js", "--base-path", str(root)]) == 0
        
        data = json.loads(capsys.readouterr().out)
        assert data["entrypoints"] == ["a.js"]
        assert {"source": "a.js", "target": "b.js"} in data["edges"]
    
    def test_missing_entrypoint_file(self, write_tree, capsys):
        root = write_tree(TREE)
        
        assert main(["list", "nope.js", "--base-path", str(root)]) == 1
        assert "nope.js" in capsys.readouterr().err
    
    def test_conflicting_options(self, write_tree, capsys):
        root = write_tree(TREE)
        
        code = main([
            "list", "a.js", "--base-path", str(root),
            "--ignore-external", "--include-external", "foo",
        ])
        
        assert code == 2
        assert "invalid options" in capsys.readouterr().err


class TestMissingArguments:
    """Tests that absent required arguments exit non-zero."""
    
    @pytest.mark.parametrize("args", [
        [],
        ["list"],
        ["chains", "a.js"],
        ["find", "a.js"],
    ])
    def test_exit_status(self, args, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(args)
        
        assert exc_info.value.code != 0
    
    def test_empty_entrypoint_list(self, capsys):
        assert main(["list", ","]) == 2
