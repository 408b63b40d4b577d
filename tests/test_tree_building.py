"""Tests for ignore-rule resolution and directory tree rendering."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from sherpa.core.models import FileNode
from sherpa.utils import TreeResolver
from sherpa.utils.ignore_rules import (
    IgnoreRuleSet,
    directory_chain,
    escape_directory,
    find_git_root,
    find_scope_root,
    parse_ignore_file,
    relative_posix,
    reroot_pattern,
)

GLYPHS = ("├── ", "└── ", "│   ", "    ")


def strip_glyphs(line: str) -> str:
    """Entry name of a rendered tree line."""
    while line.startswith(GLYPHS):
        line = line[4:]
    return line


def make_repo(root: Path) -> Path:
    (root / ".git").mkdir(parents=True)
    return root


class TestRerootPattern:
    """Patterns from nested ignore files only apply below their directory."""

    def test_root_patterns_unchanged(self):
        assert reroot_pattern("*.log", "") == "*.log"
        assert reroot_pattern("/build", "") == "/build"

    def test_slash_free_pattern_matches_at_any_depth(self):
        assert reroot_pattern("*.log", "sub") == "sub/**/*.log"

    def test_directory_pattern_is_slash_free(self):
        assert reroot_pattern("cache/", "sub") == "sub/**/cache/"

    def test_pattern_with_slash_is_anchored(self):
        assert reroot_pattern("docs/*.md", "sub") == "sub/docs/*.md"
        assert reroot_pattern("/only_here.txt", "a/b") == "a/b/only_here.txt"

    def test_negation_preserved(self):
        assert reroot_pattern("!keep.log", "sub") == "!sub/**/keep.log"
        assert reroot_pattern("!/keep.log", "sub") == "!sub/keep.log"

    def test_glob_characters_in_directory_are_literal(self):
        assert reroot_pattern("*.tmp", "[ab]") == "\\[ab\\]/**/*.tmp"
        assert reroot_pattern("/*.tmp", "docs/*") == "docs/\\*/*.tmp"

    def test_leading_bang_or_hash_in_directory_is_literal(self):
        assert reroot_pattern("*.tmp", "!important") == "\\!important/**/*.tmp"
        assert reroot_pattern("!keep.tmp", "#x") == "!\\#x/**/keep.tmp"

    def test_escape_directory_per_component(self):
        assert escape_directory("docs/[draft]/!notes") == "docs/\\[draft\\]/\\!notes"
        assert escape_directory("plain/name") == "plain/name"


class TestScopeResolution:
    """Scope root discovery and directory chains."""

    def test_git_root_found_from_nested_directory(self, sample_repo):
        nested = sample_repo / "src" / "utils"
        assert find_git_root(nested) == sample_repo
        assert find_scope_root(nested) == sample_repo

    def test_git_root_inclusive(self, sample_repo):
        assert find_git_root(sample_repo) == sample_repo

    def test_directory_chain_root_first(self, sample_repo):
        nested = sample_repo / "src" / "utils"
        assert directory_chain(sample_repo, nested) == [
            sample_repo,
            sample_repo / "src",
            nested,
        ]

    def test_relative_posix(self, sample_repo):
        assert relative_posix(sample_repo, sample_repo) == ""
        assert relative_posix(sample_repo / "src" / "main.py", sample_repo) == "src/main.py"

    def test_parse_ignore_file_skips_comments_and_blanks(self, temp_workspace):
        ignore_file = temp_workspace / ".gitignore"
        ignore_file.write_text("# comment\n\n*.log\n   \n!keep.log\n")
        assert parse_ignore_file(ignore_file) == ["*.log", "!keep.log"]


class TestIgnoreRuleSet:
    """Merged matcher behaviour."""

    def test_directory_only_pattern(self, temp_workspace):
        rules = IgnoreRuleSet(scope_root=temp_workspace, patterns=["logs/"])
        assert rules.is_ignored("logs", is_dir=True)
        assert not rules.is_ignored("logs", is_dir=False)

    def test_later_negation_wins(self, temp_workspace):
        rules = IgnoreRuleSet(scope_root=temp_workspace, patterns=["*.log", "!keep.log"])
        assert rules.is_ignored("a.log")
        assert not rules.is_ignored("keep.log")

    def test_extend_rebuilds_matcher(self, temp_workspace):
        rules = IgnoreRuleSet(scope_root=temp_workspace, patterns=["*.log"])
        assert not rules.is_ignored("a.tmp")
        rules.extend(["*.tmp"])
        assert rules.is_ignored("a.tmp")

    def test_for_directory_collects_nested_rules(self, sample_repo):
        (sample_repo / "src" / ".gitignore").write_text("*.txt\n")
        rules = IgnoreRuleSet.for_directory(sample_repo / "src")
        assert rules.scope_root == sample_repo
        assert "src/**/*.txt" in rules.patterns
        assert "node_modules/" in rules.patterns

    def test_excluded_directory_does_not_load_its_ignore_file(self, temp_workspace):
        repo = make_repo(temp_workspace / "repo")
        (repo / ".gitignore").write_text("vendor/\n")
        (repo / "vendor").mkdir()
        (repo / "vendor" / ".gitignore").write_text("!*\n")

        rules = IgnoreRuleSet.for_directory(repo / "vendor")
        assert rules.patterns == ["vendor/"]


class TestRenderFlat:
    """Flat text rendering."""

    def test_sample_repo_layout(self, sample_repo):
        expected = "\n".join([
            "sample_repo",
            "├── .gitignore",
            "├── README.md",
            "├── setup.py",
            "├── src",
            "│   ├── __init__.py",
            "│   ├── main.py",
            "│   └── utils",
            "│       └── helpers.py",
            "└── tests",
            "    └── test_main.py",
        ])
        assert TreeResolver().render_flat(sample_repo) == expected

    def test_vcs_directories_always_hidden(self, temp_workspace):
        repo = make_repo(temp_workspace / "repo")
        (repo / ".hg").mkdir()
        (repo / ".svn").mkdir()
        (repo / "file.txt").write_text("x")

        output = TreeResolver().render_flat(repo)
        assert output == "repo\n└── file.txt"

    def test_ignored_files_excluded_and_emptied_directory_kept(self, temp_workspace):
        d = temp_workspace / "d"
        (d / "sub").mkdir(parents=True)
        (d / "only_logs").mkdir()
        (d / ".gitignore").write_text("*.log\n")
        (d / "sub" / "f.log").write_text("log")
        (d / "sub" / "g.txt").write_text("text")
        (d / "only_logs" / "x.log").write_text("log")

        lines = TreeResolver().render_flat(d).splitlines()
        names = [strip_glyphs(line) for line in lines[1:]]

        assert "g.txt" in names
        assert "f.log" not in names
        assert "x.log" not in names
        assert "sub" in names
        assert "only_logs" in names

    def test_negation_precedence(self, temp_workspace):
        repo = make_repo(temp_workspace / "repo")
        (repo / ".gitignore").write_text("*.log\n!keep.log\n")
        (repo / "a.log").write_text("a")
        (repo / "keep.log").write_text("k")

        output = TreeResolver().render_flat(repo)
        assert "keep.log" in output
        assert "a.log" not in output

    def test_nested_ignore_file_only_affects_its_subtree(self, temp_workspace):
        repo = make_repo(temp_workspace / "repo")
        (repo / "sub").mkdir()
        (repo / "sub" / ".gitignore").write_text("*.txt\n")
        (repo / "a.txt").write_text("a")
        (repo / "sub" / "b.txt").write_text("b")
        (repo / "sub" / "c.md").write_text("c")

        names = [strip_glyphs(line) for line in TreeResolver().render_flat(repo).splitlines()]
        assert "a.txt" in names
        assert "b.txt" not in names
        assert "c.md" in names

    @pytest.mark.parametrize("directory", ["[ab]", "!important", "#x", "a*"])
    def test_ignore_file_in_oddly_named_directory(self, temp_workspace, directory):
        """Glob and negation characters in a directory name do not change its rules' scope."""
        repo = make_repo(temp_workspace / "repo")
        (repo / directory).mkdir()
        (repo / directory / ".gitignore").write_text("*.tmp\n")
        (repo / directory / "x.tmp").write_text("x")
        (repo / directory / "x.txt").write_text("x")

        assert TreeResolver().render_flat(repo / directory) == "\n".join([
            directory,
            "├── .gitignore",
            "└── x.txt",
        ])

    def test_anchored_nested_pattern(self, temp_workspace):
        repo = make_repo(temp_workspace / "repo")
        (repo / "sub" / "deeper").mkdir(parents=True)
        (repo / "sub" / ".gitignore").write_text("/only_here.txt\n")
        (repo / "sub" / "only_here.txt").write_text("x")
        (repo / "sub" / "deeper" / "only_here.txt").write_text("y")

        assert TreeResolver().render_flat(repo) == "\n".join([
            "repo",
            "└── sub",
            "    ├── .gitignore",
            "    └── deeper",
            "        └── only_here.txt",
        ])

    def test_excluded_directory_cannot_resurrect_itself(self, temp_workspace):
        repo = make_repo(temp_workspace / "repo")
        (repo / "vendor").mkdir()
        (repo / ".gitignore").write_text("vendor/\n")
        (repo / "vendor" / ".gitignore").write_text("!keep.txt\n")
        (repo / "vendor" / "keep.txt").write_text("k")

        assert TreeResolver().render_flat(repo / "vendor") == "vendor"
        assert "vendor" not in TreeResolver().render_flat(repo).splitlines()[1:]

    def test_max_depth_limits_listing(self, temp_workspace):
        repo = make_repo(temp_workspace / "repo")
        (repo / "a" / "b").mkdir(parents=True)
        (repo / "a" / "b" / "deep.txt").write_text("x")
        (repo / "top.txt").write_text("x")

        output = TreeResolver().render_flat(repo, max_depth=1)
        assert output == "repo\n├── a\n└── top.txt"

    def test_max_depth_two(self, temp_workspace):
        repo = make_repo(temp_workspace / "repo")
        (repo / "a" / "b").mkdir(parents=True)
        (repo / "a" / "b" / "deep.txt").write_text("x")

        output = TreeResolver().render_flat(repo, max_depth=2)
        assert output == "repo\n└── a\n    └── b"

    def test_constructor_depth_is_default(self, temp_workspace):
        repo = make_repo(temp_workspace / "repo")
        (repo / "a" / "b").mkdir(parents=True)

        resolver = TreeResolver(max_depth=1)
        assert resolver.render_flat(repo) == "repo\n└── a"
        assert resolver.render_flat(repo, max_depth=5) == "repo\n└── a\n    └── b"

    def test_idempotent(self, sample_repo):
        resolver = TreeResolver()
        assert resolver.render_flat(sample_repo) == resolver.render_flat(sample_repo)

    def test_symlinks_listed_but_not_followed(self, temp_workspace):
        repo = make_repo(temp_workspace / "repo")
        (repo / "real").mkdir()
        (repo / "real" / "inside.txt").write_text("x")
        os.symlink(repo / "real", repo / "link")

        lines = TreeResolver().render_flat(repo).splitlines()
        assert "├── link" in lines
        assert sum(1 for line in lines if line.endswith("inside.txt")) == 1

    def test_unreadable_directory_rendered_inline(self, temp_workspace):
        repo = make_repo(temp_workspace / "repo")
        (repo / "locked").mkdir()
        (repo / "locked" / "secret.txt").write_text("x")
        original = TreeResolver.list_entries

        def list_entries(directory):
            if Path(directory).name == "locked":
                raise PermissionError("Permission denied")
            return original(directory)

        with patch.object(TreeResolver, "list_entries", side_effect=list_entries):
            output = TreeResolver().render_flat(repo)

        assert output == "repo\n└── locked\n    [Error reading directory: Permission denied]"


class TestBuildTree:
    """Structured tree building."""

    def test_paths_relative_to_base(self, sample_repo):
        tree = TreeResolver().build_tree(sample_repo)

        assert tree.path == "."
        assert tree.name == "sample_repo"
        assert tree.is_directory()
        assert [child.name for child in tree.children] == [".gitignore", "README.md", "setup.py", "src", "tests"]

        src = tree.children[3]
        assert src.path == "src"
        assert [child.path for child in src.children] == ["src/__init__.py", "src/main.py", "src/utils"]

    def test_explicit_base_dir(self, sample_repo):
        tree = TreeResolver().build_tree(sample_repo / "src", base_dir=sample_repo)
        assert tree.path == "src"
        assert tree.children[0].path == "src/__init__.py"

    def test_file_path_gives_file_node(self, sample_repo):
        node = TreeResolver().build_tree(sample_repo / "README.md")
        assert node == FileNode(path=".", name="README.md", type="file")

    def test_missing_path_raises(self, temp_workspace):
        with pytest.raises(FileNotFoundError):
            TreeResolver().build_tree(temp_workspace / "missing")

    def test_honors_max_depth(self, temp_workspace):
        repo = make_repo(temp_workspace / "repo")
        (repo / "a" / "b").mkdir(parents=True)
        (repo / "a" / "b" / "deep.txt").write_text("x")

        tree = TreeResolver().build_tree(repo, max_depth=1)
        a = tree.children[0]
        assert a.name == "a"
        assert a.children == []

    def test_preorder_matches_flat_rendering(self, sample_repo):
        (sample_repo / "src" / "utils" / "more").mkdir()
        (sample_repo / "src" / "utils" / "more" / "x.py").write_text("")
        resolver = TreeResolver()

        tree = resolver.build_tree(sample_repo)
        tree_names = [node.name for node in tree.iter_preorder()]
        flat_names = [strip_glyphs(line) for line in resolver.render_flat(sample_repo).splitlines()]

        assert tree_names == flat_names

    def test_unreadable_subdirectory_kept_without_children(self, temp_workspace):
        repo = make_repo(temp_workspace / "repo")
        (repo / "locked").mkdir()
        (repo / "locked" / "secret.txt").write_text("x")
        original = TreeResolver.list_entries

        def list_entries(directory):
            if Path(directory).name == "locked":
                raise PermissionError("Permission denied")
            return original(directory)

        with patch.object(TreeResolver, "list_entries", side_effect=list_entries):
            tree = TreeResolver().build_tree(repo)

        assert tree.children == [FileNode(path="locked", name="locked", type="directory")]

    def test_to_dict_shape(self, sample_repo):
        data = TreeResolver().build_tree(sample_repo / "tests", base_dir=sample_repo).to_dict()
        assert data == {
            "name": "tests",
            "type": "directory",
            "path": "tests",
            "children": [
                {"name": "test_main.py", "type": "file", "path": "tests/test_main.py"},
            ],
        }
