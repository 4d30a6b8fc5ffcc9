"""
Path containment for object keys.

Object keys come from remote notifications and are mapped onto the local
filesystem, so they are the trust boundary for path traversal.
"""

import os
from pathlib import Path, PurePosixPath
from typing import Optional, Tuple, Union

from core.errors.exceptions import PathTraversalError


def validate_object_key(key: str) -> Tuple[bool, Optional[str]]:
    """
    Validate an object key before it is mapped onto local disk.

    Rejects empty keys, absolute keys, keys with '..' segments, keys that
    end in a separator, and keys with NUL bytes or backslashes.

    Args:
        key: Slash-delimited object key

    Returns:
        (is_valid, error_message) tuple
    """
    if not key:
        return False, "Empty key"

    if "\x00" in key:
        return False, "Key contains NUL byte"

    if "\\" in key:
        return False, "Key contains backslash"

    if key.startswith("/"):
        return False, "Key must be relative"

    if key.endswith("/"):
        return False, "Key must name a file, not a directory"

    parts = PurePosixPath(key).parts
    if any(part == ".." for part in parts):
        return False, "Key must not contain '..' segments"

    return True, None


def resolve_under(base_dir: Union[str, Path], key: str) -> Path:
    """
    Resolve key below base_dir, refusing anything that escapes it.

    Symlinks inside base_dir are followed, so a key that passes
    validate_object_key is still checked against the resolved location.

    Args:
        base_dir: Root directory for materialized objects
        key: Slash-delimited object key

    Returns:
        Absolute path of the object inside base_dir

    Raises:
        PathTraversalError: If the key is invalid or resolves outside base_dir
    """
    is_valid, error = validate_object_key(key)
    if not is_valid:
        raise PathTraversalError(
            f"Rejected object key: {error}", context={"key": key}
        )

    root = Path(base_dir).resolve()
    target = (root / key).resolve()

    if os.path.commonpath([str(root), str(target)]) != str(root) or target == root:
        raise PathTraversalError(
            "Object key resolves outside base directory",
            context={"key": key, "base_dir": str(root)},
        )

    return target
