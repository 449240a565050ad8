"""
Verbatim copying of static assets into the output tree.
"""

import os
import shutil
import stat
import logging

from .errors import IOFailedError, NotRegularFileError, SourceNotFoundError

logger = logging.getLogger('Klaus.assets')


def copy_file(src, dst):
    """
    Copy the bytes of a regular file from src to dst, overwriting dst.

    Symlinks are not followed, so a link is reported as not regular.

    Returns:
        Number of bytes copied
    """
    try:
        source_stat = os.lstat(src)
    except FileNotFoundError as e:
        raise SourceNotFoundError(f"{src} does not exist", path=src) from e
    except OSError as e:
        raise IOFailedError(f"Failed to stat {src}: {e}", path=src) from e

    if not stat.S_ISREG(source_stat.st_mode):
        raise NotRegularFileError(f"{src} is not a regular file", path=src)

    try:
        with open(src, 'rb') as source, open(dst, 'wb') as destination:
            shutil.copyfileobj(source, destination)
            n_bytes = destination.tell()
    except (IOError, OSError) as e:
        raise IOFailedError(f"Failed to copy {src} to {dst}: {e}", path=src) from e

    logger.debug(f"Copied {src} -> {dst} ({n_bytes} bytes)")
    return n_bytes
