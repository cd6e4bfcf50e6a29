"""Secure file utilities for cliphist.

Clipboard history routinely contains passwords and tokens, so everything
written under ~/.cliphist is owner-only.
"""

import os
import stat
from pathlib import Path

# Owner-only directories
SECURE_DIR_MODE: int = stat.S_IRWXU  # 0o700

# Owner read/write only files
SECURE_FILE_MODE: int = stat.S_IRUSR | stat.S_IWUSR  # 0o600


def secure_mkdir(path: Path, parents: bool = True) -> None:
    """Create directory with secure permissions (0o700).

    Unlike Path.mkdir(), this ensures the final directory has secure
    permissions even when it already exists.

    Args:
        path: Directory path to create.
        parents: If True, create parent directories as needed.
    """
    if parents:
        for parent in reversed(list(path.parents)):
            if not parent.exists():
                parent.mkdir(mode=SECURE_DIR_MODE)
                # Re-apply in case umask interfered
                os.chmod(parent, SECURE_DIR_MODE)

    if not path.exists():
        path.mkdir(mode=SECURE_DIR_MODE)

    os.chmod(path, SECURE_DIR_MODE)


def secure_touch(path: Path) -> None:
    """Create an empty file with owner-only permissions if it doesn't exist.

    Uses O_CREAT | O_EXCL so the file never exists with looser permissions,
    even briefly.
    """
    if path.exists():
        return
    try:
        fd = os.open(
            str(path),
            os.O_CREAT | os.O_EXCL | os.O_WRONLY,
            SECURE_FILE_MODE,
        )
    except FileExistsError:
        # Created concurrently; permissions are the creator's concern
        return
    os.close(fd)
