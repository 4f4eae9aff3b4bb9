"""File locking and atomic JSON writes for the shared documents.

Documents are read and written as UTF-8. Non-ASCII text is written as-is so
entries this tool does not own come back unchanged.
"""
from __future__ import annotations

import fcntl
import json
import os
import shutil
from contextlib import ExitStack, contextmanager
from pathlib import Path
from typing import Any, Generator, Iterable

JSON_INDENT = "\t"


def lock_path_for(path: Path) -> Path:
    return path.with_suffix(path.suffix + ".lock")


def _tmp_path_for(path: Path) -> Path:
    return path.with_suffix(path.suffix + ".tmp")


def _backup_path_for(path: Path) -> Path:
    return path.with_suffix(path.suffix + ".bak")


@contextmanager
def exclusive_file_lock(path: Path) -> Generator[None, None, None]:
    """Context manager for exclusive file locking.

    Usage:
        with exclusive_file_lock(Path("config/default.json")):
            # Read, modify, write
            pass
    """
    lock_path = lock_path_for(path)
    lock_path.parent.mkdir(parents=True, exist_ok=True)

    with open(lock_path, "w") as lock_file:
        try:
            # Blocks if another process holds it
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
            yield
        finally:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)


@contextmanager
def exclusive_file_locks(paths: Iterable[Path]) -> Generator[None, None, None]:
    """Lock several documents at once, always in the same (sorted) order."""
    ordered = sorted({Path(p).resolve() for p in paths}, key=str)
    with ExitStack() as stack:
        for path in ordered:
            stack.enter_context(exclusive_file_lock(path))
        yield


def read_json(path: Path, missing_ok: bool = False) -> dict[str, Any]:
    """Read a JSON object. A missing file is {} only when missing_ok."""
    if missing_ok and not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path} does not contain a JSON object")
    return data


def _stage_json(path: Path, data: dict[str, Any]) -> Path:
    """Write data next to path as <name>.tmp, flushed to disk. Returns the tmp path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = _tmp_path_for(path)
    with open(tmp_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=JSON_INDENT, ensure_ascii=False)
        f.flush()
        os.fsync(f.fileno())
    return tmp_path


def _backup(path: Path) -> Path | None:
    """Copy the current document to <name>.bak. None if there is nothing to keep."""
    if not path.exists():
        return None
    backup_path = _backup_path_for(path)
    shutil.copy2(path, backup_path)
    return backup_path


def atomic_write_json(documents: list[tuple[Path, dict[str, Any]]]) -> None:
    """Write several JSON documents with the tmp+rename pattern.

    Every document is serialized and staged before the first rename, so a
    serialization or disk error leaves all targets untouched. The previous
    versions are kept as <name>.bak until every rename has succeeded; if one
    fails, the documents already replaced are restored from them.
    """
    staged: list[tuple[Path, Path]] = []
    try:
        for path, data in documents:
            staged.append((_stage_json(path, data), path))
    except BaseException:
        for path, _ in documents:
            _tmp_path_for(path).unlink(missing_ok=True)
        raise

    backups: dict[Path, Path | None] = {}
    replaced: list[Path] = []
    try:
        for _, path in staged:
            backups[path] = _backup(path)
        for tmp_path, path in staged:
            os.replace(tmp_path, path)
            replaced.append(path)
    except OSError:
        for path in reversed(replaced):
            backup_path = backups[path]
            if backup_path is None:
                path.unlink(missing_ok=True)
            else:
                os.replace(backup_path, path)
        raise
    finally:
        for tmp_path, _ in staged:
            tmp_path.unlink(missing_ok=True)
        for backup_path in backups.values():
            if backup_path is not None:
                backup_path.unlink(missing_ok=True)
