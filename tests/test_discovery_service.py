import os

import pytest

from content_server.core.config import DEFAULT_VALID_ASSETS
from content_server.services.discovery_service import discover_assets, relative_name


def names(paths, root):
    return [relative_name(p, root) for p in paths]


def test_finds_allow_listed_files_recursively(content_root):
    found = discover_assets(content_root, DEFAULT_VALID_ASSETS)
    assert names(found, content_root) == [
        "game.qvm",
        "maps/arena/arena.pk3",
        "weapons/gun.pk3",
    ]
    assert all(p.is_absolute() for p in found)


def test_extension_match_is_case_sensitive(content_root):
    found = discover_assets(content_root, [".PK3"])
    assert names(found, content_root) == ["SHOUT.PK3"]


def test_empty_allow_list_finds_nothing(content_root):
    assert discover_assets(content_root, []) == []


def test_deeply_nested_files(tmp_path):
    deep = tmp_path / "a" / "b" / "c" / "d"
    deep.mkdir(parents=True)
    (deep / "deep.sh").write_text("#!/bin/sh\n")
    found = discover_assets(tmp_path, [".sh"])
    assert names(found, tmp_path) == ["a/b/c/d/deep.sh"]


def test_symlinks_are_not_followed(tmp_path):
    outside = tmp_path / "outside"
    outside.mkdir()
    (outside / "leak.pk3").write_bytes(b"secret")
    root = tmp_path / "root"
    root.mkdir()
    os.symlink(outside, root / "linked_dir")
    os.symlink(outside / "leak.pk3", root / "linked.pk3")

    assert discover_assets(root, [".pk3"]) == []


def test_missing_root_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        discover_assets(tmp_path / "nope", [".pk3"])


def test_root_that_is_a_file_raises(tmp_path):
    f = tmp_path / "file.pk3"
    f.write_bytes(b"x")
    with pytest.raises(NotADirectoryError):
        discover_assets(f, [".pk3"])
