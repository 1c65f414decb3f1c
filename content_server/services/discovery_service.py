"""
Discovery Service - find distributable assets under the content root
"""

import os
from pathlib import Path
from typing import Iterable, List


def _walk(directory: Path, extensions: frozenset, found: List[Path]) -> None:
    # scandir raises on unreadable directories, nothing is skipped silently
    with os.scandir(directory) as it:
        for entry in it:
            if entry.is_dir(follow_symlinks=False):
                _walk(Path(entry.path), extensions, found)
            elif entry.is_file(follow_symlinks=False):
                if os.path.splitext(entry.name)[1] in extensions:
                    found.append(Path(entry.path))


def relative_name(path: Path, root: Path) -> str:
    """Forward-slash path of `path` relative to `root`, as used in the manifest."""
    return Path(path).resolve().relative_to(Path(root).resolve()).as_posix()


def discover_assets(root: Path, extensions: Iterable[str]) -> List[Path]:
    """
    Recursively collect files under `root` whose extension is allow-listed.

    Extensions are matched case-sensitively (".pk3" does not match "GUN.PK3").
    Symlinks are not followed.

    Returns:
        Absolute paths, sorted by their relative name.

    Raises:
        OSError: if the root or any directory below it cannot be read.
    """
    root = Path(root).resolve()
    found: List[Path] = []
    _walk(root, frozenset(extensions), found)
    found.sort(key=lambda p: p.relative_to(root).as_posix())
    return found
