"""Tests for the import tag constructors."""

import glob
from pathlib import Path

import pytest
import yaml

from yaml_import.constructors.import_tags import AnchorQuery
from yaml_import.context import ImportContext
from yaml_import.exceptions import (
    AnchorNotFoundError,
    CyclicImportError,
    ImportDecodeError,
    ImportNotFoundError,
    ImportSyntaxError,
    ImportTypeError,
    PatternSyntaxError,
)
from yaml_import.parsers.yaml_loader import load, load_file


def write(root: Path, name: str, content: str) -> Path:
    path = root / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


@pytest.fixture
def context(tmp_path):
    """Import context rooted at the test directory."""
    return ImportContext(root=tmp_path)


class TestAnchorQuery:
    """Tests for anchor reference parsing."""

    def test_from_reference(self):
        query = AnchorQuery.from_reference("configs/base.yml#defaults")

        assert query.path == "configs/base.yml"
        assert query.anchor == "defaults"

    def test_splits_at_last_hash(self):
        query = AnchorQuery.from_reference("odd#name.yml#anchor")

        assert query.path == "odd#name.yml"
        assert query.anchor == "anchor"

    @pytest.mark.parametrize("reference", ["base.yml", "#anchor", "base.yml#", "  #  "])
    def test_invalid_reference(self, reference):
        with pytest.raises(ValueError):
            AnchorQuery.from_reference(reference)


class TestImport:
    """Tests for !import."""

    def test_import_file(self, tmp_path, context):
        """The tagged value becomes the file's contents."""
        write(tmp_path, "db.yml", "host: localhost\nport: 5432\n")

        result = load("database: !import db.yml\n", context=context)

        assert result == {"database": {"host": "localhost", "port": 5432}}

    def test_nested_import_chain(self, tmp_path, context):
        """Imports inside imported files are resolved recursively."""
        write(tmp_path, "a.yml", "b: !import b.yml\n")
        write(tmp_path, "b.yml", "c: !import c.yml\n")
        write(tmp_path, "c.yml", "leaf: true\n")

        result = load("root: !import a.yml\n", context=context)

        assert result == {"root": {"b": {"c": {"leaf": True}}}}

    def test_relative_to_import_root_not_caller(self, tmp_path, context):
        """Relative paths in nested files resolve against the import root."""
        write(tmp_path, "sub/outer.yml", "inner: !import shared.yml\n")
        write(tmp_path, "sub/shared.yml", "from: subdirectory\n")
        write(tmp_path, "shared.yml", "from: root\n")

        result = load("outer: !import sub/outer.yml\n", context=context)

        assert result == {"outer": {"inner": {"from": "root"}}}

    def test_import_absolute_path(self, tmp_path):
        """Absolute paths ignore the import root."""
        target = write(tmp_path, "abs.yml", "value: 1\n")
        context = ImportContext(root=tmp_path / "elsewhere")

        result = load(f"x: !import {target}\n", context=context)

        assert result == {"x": {"value": 1}}

    def test_import_scalar_and_list_files(self, tmp_path, context):
        """Any top-level value can be imported."""
        write(tmp_path, "name.yml", "just a string\n")
        write(tmp_path, "list.yml", "- 1\n- 2\n")
        write(tmp_path, "empty.yml", "")

        result = load(
            "name: !import name.yml\nlist: !import list.yml\nempty: !import empty.yml\n",
            context=context,
        )

        assert result == {"name": "just a string", "list": [1, 2], "empty": None}

    def test_import_as_root_value(self, tmp_path, context):
        """The whole document can be an import."""
        write(tmp_path, "real.yml", "k: v\n")

        assert load("!import real.yml\n", context=context) == {"k": "v"}

    def test_missing_file(self, context):
        """A missing file fails with the path and the referencing location."""
        with pytest.raises(ImportNotFoundError) as exc_info:
            load("x: !import nope.yml\n", context=context)

        assert exc_info.value.path.endswith("nope.yml")
        assert "line 1" in str(exc_info.value)

    def test_tag_on_mapping_node(self, context):
        """Import tags only accept scalar references."""
        with pytest.raises(ImportTypeError) as exc_info:
            load("x: !import {path: a.yml}\n", context=context)

        assert "!import" in str(exc_info.value)
        assert "mapping" in str(exc_info.value)

    def test_tag_on_sequence_node(self, context):
        with pytest.raises(ImportTypeError, match="sequence"):
            load("x: !import-all [a.yml]\n", context=context)

    def test_empty_reference(self, context):
        with pytest.raises(ImportSyntaxError, match="empty import reference"):
            load("x: !import\n", context=context)

    def test_errors_are_yaml_errors(self, context):
        """Callers can catch every failure as a YAML error."""
        with pytest.raises(yaml.YAMLError):
            load("x: !import nope.yml\n", context=context)

    def test_undecodable_file(self, tmp_path, context):
        """Bad bytes in an imported file fail as a YAML error at the import."""
        (tmp_path / "bad.yml").write_bytes(b"k: \xff\xfe\n")

        with pytest.raises(ImportDecodeError) as exc_info:
            load("ok: 1\nx: !import bad.yml\n", context=context)

        assert isinstance(exc_info.value, yaml.YAMLError)
        assert exc_info.value.path.endswith("bad.yml")
        assert exc_info.value.encoding == "utf-8"
        assert exc_info.value.context_mark.line == 1

    def test_undecodable_nested_file(self, tmp_path, context):
        """The innermost import that reads the bad file is reported."""
        write(tmp_path, "outer.yml", "inner: !import bad.yml\n")
        (tmp_path / "bad.yml").write_bytes(b"\xff\n")

        with pytest.raises(ImportDecodeError) as exc_info:
            load("x: !import outer.yml\n", context=context)

        assert exc_info.value.path.endswith("bad.yml")


class TestImportAll:
    """Tests for !import-all."""

    def test_import_all_in_enumeration_order(self, tmp_path, context):
        """Every matched file is loaded, in filesystem enumeration order."""
        for name in ["one", "two", "three"]:
            write(tmp_path, f"parts/{name}.yml", f"name: {name}\n")

        result = load("parts: !import-all parts/*.yml\n", context=context)

        expected = [
            {"name": Path(p).stem}
            for p in glob.glob("parts/*.yml", root_dir=tmp_path, recursive=True)
        ]
        assert result == {"parts": expected}
        assert len(result["parts"]) == 3

    def test_import_all_recursive(self, tmp_path, context):
        write(tmp_path, "tree/a.yml", "v: a\n")
        write(tmp_path, "tree/x/y/b.yml", "v: b\n")

        result = load("all: !import-all tree/**/*.yml\n", context=context)

        assert sorted(item["v"] for item in result["all"]) == ["a", "b"]

    def test_import_all_no_matches(self, context):
        """A pattern matching nothing yields an empty list."""
        assert load("none: !import-all missing/*.yml\n", context=context) == {"none": []}

    def test_import_all_ignores_captures(self, tmp_path, context):
        """Plain glob imports accept placeholders but don't merge captures."""
        write(tmp_path, "items/foo.yml", "size: 1\n")

        result = load("items: !import-all items/{name:*}.yml\n", context=context)

        assert result == {"items": [{"size": 1}]}

    def test_malformed_pattern(self, context):
        with pytest.raises(PatternSyntaxError) as exc_info:
            load("x: !import-all items/{name:*.yml\n", context=context)

        assert "items/{name:*.yml" in str(exc_info.value)
        assert "line 1" in str(exc_info.value)

    def test_uses_context_cache(self, tmp_path, context):
        """Glob results are memoized on the context's resolver."""
        write(tmp_path, "parts/a.yml", "v: 1\n")
        load("x: !import-all parts/*.yml\n", context=context)

        write(tmp_path, "parts/b.yml", "v: 2\n")
        result = load("x: !import-all parts/*.yml\n", context=context)

        assert result == {"x": [{"v": 1}]}


class TestImportAnchor:
    """Tests for !import.anchor."""

    SOURCE = """\
defaults: &defaults
  retries: 3
  timeout: 10
production: &production
  retries: 9
name: &name service
"""

    def test_import_anchor_subtree(self, tmp_path, context):
        """Only the anchored subtree is constructed."""
        write(tmp_path, "base.yml", self.SOURCE)

        result = load("settings: !import.anchor base.yml#defaults\n", context=context)

        assert result == {"settings": {"retries": 3, "timeout": 10}}

    def test_import_scalar_anchor(self, tmp_path, context):
        write(tmp_path, "base.yml", self.SOURCE)

        result = load("name: !import.anchor base.yml#name\n", context=context)

        assert result == {"name": "service"}

    def test_anchor_subtree_with_nested_import(self, tmp_path, context):
        """Import tags inside the anchored subtree are resolved too."""
        write(tmp_path, "creds.yml", "user: admin\n")
        write(tmp_path, "base.yml", "db: &db\n  creds: !import creds.yml\n  port: 1\n")

        result = load("db: !import.anchor base.yml#db\n", context=context)

        assert result == {"db": {"creds": {"user": "admin"}, "port": 1}}

    def test_anchor_subtree_with_internal_alias(self, tmp_path, context):
        """Aliases defined inside the subtree keep working."""
        write(tmp_path, "base.yml", "block: &block\n  a: &x 1\n  b: *x\n")

        result = load("v: !import.anchor base.yml#block\n", context=context)

        assert result == {"v": {"a": 1, "b": 1}}

    def test_anchor_subtree_with_outside_alias(self, tmp_path, context):
        """Aliases to anchors defined earlier in the file resolve."""
        write(tmp_path, "base.yml", "base: &b {x: 1}\nsub: &s\n  <<: *b\n  y: 2\n")

        result = load("v: !import.anchor base.yml#s\n", context=context)

        assert result == {"v": {"x": 1, "y": 2}}

    def test_anchor_subtree_with_chained_outside_aliases(self, tmp_path, context):
        """Earlier definitions that alias other anchors resolve as well."""
        write(
            tmp_path,
            "base.yml",
            "a: &a {k: 1}\nskip: &skip {k: 0}\nb: &b {<<: *a, m: 2}\nsub: &s {<<: *b, y: 3}\n",
        )

        result = load("v: !import.anchor base.yml#s\n", context=context)

        assert result == {"v": {"k": 1, "m": 2, "y": 3}}

    def test_outside_alias_matches_whole_file_load(self, tmp_path, context):
        document = "shared: &shared [1, 2]\nblock: &block\n  items: *shared\n  more: [*shared]\n"
        write(tmp_path, "base.yml", document)

        result = load("v: !import.anchor base.yml#block\n", context=context)

        assert result["v"] == yaml.safe_load(document)["block"]

    def test_undecodable_anchor_file(self, tmp_path, context):
        (tmp_path / "base.yml").write_bytes(b"a: &a \xff\n")

        with pytest.raises(ImportDecodeError):
            load("v: !import.anchor base.yml#a\n", context=context)

    def test_rest_of_file_is_not_constructed(self, tmp_path, context):
        """Broken content outside the subtree doesn't matter."""
        write(tmp_path, "base.yml", "good: &good {a: 1}\nbad: !import missing.yml\n")

        result = load("v: !import.anchor base.yml#good\n", context=context)

        assert result == {"v": {"a": 1}}

    def test_missing_anchor(self, tmp_path, context):
        write(tmp_path, "base.yml", self.SOURCE)

        with pytest.raises(AnchorNotFoundError) as exc_info:
            load("v: !import.anchor base.yml#staging\n", context=context)

        assert exc_info.value.anchor == "staging"
        assert exc_info.value.source.endswith("base.yml")

    def test_reference_without_anchor(self, context):
        with pytest.raises(ImportSyntaxError, match="path#anchor"):
            load("v: !import.anchor base.yml\n", context=context)

    def test_missing_file(self, context):
        with pytest.raises(ImportNotFoundError):
            load("v: !import.anchor nope.yml#x\n", context=context)


class TestImportAllParameterized:
    """Tests for !import-all-parameterized."""

    def test_captures_merged_into_mapping(self, tmp_path, context):
        """Captured placeholder values become top-level keys."""
        write(tmp_path, "items/foo.yml", "size: 3\n")

        result = load("items: !import-all-parameterized items/{name:*}.yml\n", context=context)

        assert result == {"items": [{"size": 3, "name": "foo"}]}

    def test_captures_override_file_keys(self, tmp_path, context):
        write(tmp_path, "items/foo.yml", "name: original\nsize: 3\n")

        result = load("items: !import-all-parameterized items/{name:*}.yml\n", context=context)

        assert result["items"][0]["name"] == "foo"
        assert result["items"][0]["size"] == 3

    def test_multiple_captures(self, tmp_path, context):
        write(tmp_path, "catalog/tools/cli/grep.yml", "kind: search\n")
        write(tmp_path, "catalog/top.yml", "kind: root\n")

        result = load(
            "all: !import-all-parameterized catalog/{group:**}/{name:*}.yml\n",
            context=context,
        )

        assert sorted(result["all"], key=lambda item: item["name"]) == [
            {"kind": "search", "group": "tools/cli", "name": "grep"},
            {"kind": "root", "group": "", "name": "top"},
        ]

    def test_empty_file_counts_as_mapping(self, tmp_path, context):
        write(tmp_path, "items/blank.yml", "")

        result = load("items: !import-all-parameterized items/{name:*}.yml\n", context=context)

        assert result == {"items": [{"name": "blank"}]}

    def test_non_mapping_file(self, tmp_path, context):
        write(tmp_path, "items/list.yml", "- 1\n")

        with pytest.raises(ImportTypeError, match="mapping"):
            load("items: !import-all-parameterized items/{name:*}.yml\n", context=context)


class TestCyclicImports:
    """Tests for import cycles."""

    def test_cycle_detected(self, tmp_path, context):
        """A cycle fails with the files involved."""
        write(tmp_path, "a.yml", "b: !import b.yml\n")
        write(tmp_path, "b.yml", "a: !import a.yml\n")

        with pytest.raises(CyclicImportError) as exc_info:
            load("root: !import a.yml\n", context=context)

        chain = exc_info.value.chain
        assert chain[0] == chain[-1]
        assert chain[0].endswith("a.yml")

    def test_self_import_from_root_file(self, tmp_path, context):
        path = write(tmp_path, "self.yml", "me: !import self.yml\n")

        with pytest.raises(CyclicImportError):
            load_file(path, context=context)

    def test_repeated_import_is_not_a_cycle(self, tmp_path, context):
        """Importing the same file twice side by side is fine."""
        write(tmp_path, "shared.yml", "v: 1\n")

        result = load("a: !import shared.yml\nb: !import shared.yml\n", context=context)

        assert result == {"a": {"v": 1}, "b": {"v": 1}}

    def test_anchor_from_same_file(self, tmp_path, context):
        """A file may import an anchor from itself."""
        path = write(tmp_path, "doc.yml", "base: &base {a: 1}\ncopy: !import.anchor doc.yml#base\n")

        assert load_file(path, context=context) == {"base": {"a": 1}, "copy": {"a": 1}}

    def test_cycle_without_detection_exhausts_stack(self, tmp_path):
        """With detection disabled the interpreter's recursion limit is the guard."""
        write(tmp_path, "a.yml", "b: !import b.yml\n")
        write(tmp_path, "b.yml", "a: !import a.yml\n")
        context = ImportContext(root=tmp_path, detect_cycles=False)

        with pytest.raises(RecursionError):
            load("root: !import a.yml\n", context=context)
