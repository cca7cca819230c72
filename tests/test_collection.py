"""
Tests for the Patch entity, PatchCollection and manifest handling.
"""

import pytest

from autopatch.errors import ConfigurationError
from autopatch.patches import (
    Patch,
    PatchCollection,
    merge_patch_maps,
    parse_patch_map,
    patches_from_map,
)


class TestPatch:
    """Patch entity basics."""

    def test_remote_and_local_urls(self):
        assert Patch("a/b", "https://example.com/fix.patch", "fix").is_remote
        assert Patch("a/b", "HTTP://example.com/fix.patch", "fix").is_remote
        assert not Patch("a/b", "patches/fix.patch", "fix").is_remote
        assert not Patch("a/b", "/abs/fix.patch", "fix").is_remote

    def test_empty_package_or_url_rejected(self):
        with pytest.raises(ValueError):
            Patch("", "patches/fix.patch", "fix")
        with pytest.raises(ValueError):
            Patch("a/b", "", "fix")

    def test_to_dict_omits_missing_checksum(self):
        data = Patch("a/b", "patches/fix.patch", "fix", resolver="root").to_dict()
        assert data == {
            "package": "a/b",
            "url": "patches/fix.patch",
            "description": "fix",
            "resolver": "root",
        }


class TestPatchCollection:
    """Indexing and deduplication."""

    def test_same_description_is_replaced(self):
        """Only the most recently added patch for a description survives."""
        collection = PatchCollection()
        collection.add_patch(Patch("a/b", "one.patch", "fix"))
        collection.add_patch(Patch("a/b", "two.patch", "fix"))
        collection.add_patch(Patch("a/b", "three.patch", "fix"))

        patches = collection.get_patches_for_package("a/b")
        assert len(patches) == 1
        assert patches[0].url == "three.patch"

    def test_replacement_keeps_position(self):
        collection = PatchCollection()
        collection.add_patch(Patch("a/b", "one.patch", "first"))
        collection.add_patch(Patch("a/b", "two.patch", "second"))
        collection.add_patch(Patch("a/b", "one-v2.patch", "first"))

        descriptions = [p.description for p in collection.get_patches_for_package("a/b")]
        assert descriptions == ["first", "second"]
        assert collection.get_patches_for_package("a/b")[0].url == "one-v2.patch"

    def test_same_description_other_package_is_separate(self):
        collection = PatchCollection()
        collection.add_patch(Patch("a/b", "one.patch", "fix"))
        collection.add_patch(Patch("c/d", "two.patch", "fix"))

        assert len(collection) == 2
        assert collection.packages() == ["a/b", "c/d"]

    def test_unknown_package_is_empty(self):
        collection = PatchCollection()
        assert collection.get_patches_for_package("nobody/nothing") == []
        assert collection.applied_map("nobody/nothing") == {}
        assert "nobody/nothing" not in collection

    def test_insertion_order(self):
        collection = PatchCollection()
        for i in range(5):
            collection.add_patch(Patch("a/b", f"{i}.patch", f"patch {i}"))

        assert [p.url for p in collection.get_patches_for_package("a/b")] == [
            f"{i}.patch" for i in range(5)
        ]

    def test_applied_map_and_dump(self):
        collection = PatchCollection()
        collection.add_patch(Patch("a/b", "one.patch", "first", resolver="root"))

        assert collection.applied_map("a/b") == {"first": "one.patch"}
        assert collection.to_dict() == {
            "a/b": [{"package": "a/b", "url": "one.patch", "description": "first", "resolver": "root"}]
        }
        assert [p.url for p in collection] == ["one.patch"]


class TestManifest:
    """Parsing and merging package -> description -> url maps."""

    def test_parse_object_form(self):
        parsed = parse_patch_map({"a/b": {"fix": "patches/fix.patch"}})
        assert parsed == {"a/b": {"fix": {"url": "patches/fix.patch"}}}

    def test_parse_list_form_with_checksum(self):
        parsed = parse_patch_map({
            "a/b": [{"description": "fix", "url": "patches/fix.patch", "sha256": "ABC"}],
        })
        assert parsed == {"a/b": {"fix": {"url": "patches/fix.patch", "sha256": "abc"}}}

    def test_parse_none_is_empty(self):
        assert parse_patch_map(None) == {}

    @pytest.mark.parametrize("raw", [
        ["not", "a", "map"],
        {"a/b": "patches/fix.patch"},
        {"a/b": {"fix": 42}},
        {"a/b": {"fix": ""}},
        {"a/b": {"fix": {"sha256": "abc"}}},
        {"a/b": [{"url": "patches/fix.patch"}]},
        {"": {"fix": "patches/fix.patch"}},
        {None: {"fix": "patches/fix.patch"}},
    ])
    def test_malformed_manifests_rejected(self, raw):
        with pytest.raises(ConfigurationError):
            parse_patch_map(raw, source="test manifest")

    def test_merge_overrides_same_description(self):
        first = {"a/b": {"fix": "one.patch", "other": "other.patch"}}
        second = {"a/b": {"fix": "two.patch"}}

        merged = merge_patch_maps(first, second)

        assert merged == {"a/b": {"fix": "two.patch", "other": "other.patch"}}

    def test_merge_keeps_sibling_packages(self):
        merged = merge_patch_maps(
            {"a/b": {"fix": "one.patch"}},
            {"c/d": {"fix": "two.patch"}},
            None,
            {},
        )
        assert merged == {"a/b": {"fix": "one.patch"}, "c/d": {"fix": "two.patch"}}

    def test_merge_does_not_mutate_inputs(self):
        first = {"a/b": {"fix": "one.patch"}}
        second = {"a/b": {"fix": "two.patch"}}

        merge_patch_maps(first, second)

        assert first == {"a/b": {"fix": "one.patch"}}
        assert second == {"a/b": {"fix": "two.patch"}}

    def test_patches_from_map(self):
        patches = patches_from_map(
            {"a/b": {"fix": {"url": "fix.patch", "sha256": "abc"}}},
            resolver="root",
        )
        assert patches == [Patch("a/b", "fix.patch", "fix", resolver="root", sha256="abc")]
