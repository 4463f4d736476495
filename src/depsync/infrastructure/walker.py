"""Source file discovery under a package root.

The walk is exhaustive and sorted so that scan output is deterministic.
Excluded directories are pruned before descending; symlinked directories
are not followed.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterator
from pathlib import Path

from depsync.domain.patterns import ExcludeMatcher, is_source_file


def walk_source_files(
    root: Path,
    excludes: ExcludeMatcher,
    on_error: Callable[[OSError], None] | None = None,
) -> Iterator[Path]:
    """Yield source files under *root* in sorted, depth-first order.

    Paths are matched against *excludes* relative to *root*, in POSIX form.
    Directories that cannot be listed are skipped and reported to
    *on_error* when given.
    """
    for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
        current = Path(dirpath)
        prefix = current.relative_to(root).as_posix()
        prefix = "" if prefix == "." else f"{prefix}/"

        # Prune in place; os.walk honours the mutated list.
        dirnames[:] = sorted(
            name for name in dirnames if not excludes.excludes_dir(f"{prefix}{name}")
        )

        for name in sorted(filenames):
            relative = f"{prefix}{name}"
            if not is_source_file(name) or excludes.excludes(relative):
                continue
            yield current / name
