"""
Bounded kernel file reads.

Reads of /proc and /sys are blocking; they run on a worker thread so that
table builds can fan out across many files, and each read is bounded by a
timeout. A timeout surfaces as TimeoutError and is handled by callers on the
same path as a missing file.
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import Any, Callable, List, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_READ_TIMEOUT = 2.0


def _read_sync(path: Path) -> str:
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return f.read()


def _list_sync(path: Path) -> List[str]:
    return os.listdir(path)


async def run_bounded(func: Callable[..., T], *args: Any, timeout: float = DEFAULT_READ_TIMEOUT) -> T:
    """Run a blocking kernel access on a worker thread, bounded by timeout.

    Raises:
        TimeoutError: The call did not complete in time
    """
    try:
        return await asyncio.wait_for(asyncio.to_thread(func, *args), timeout)
    except asyncio.TimeoutError as e:
        target = args[0] if args else getattr(func, "__qualname__", func)
        logger.warning(f"Timed out after {timeout}s reading {target}")
        raise TimeoutError(f"Timed out reading {target}") from e


async def read_text(path: Union[str, Path], timeout: float = DEFAULT_READ_TIMEOUT) -> str:
    """Read a whole kernel pseudo-file as text.

    Args:
        path: File to read
        timeout: Seconds to wait before giving up

    Raises:
        OSError: The file is missing or unreadable
        TimeoutError: The read did not complete in time
    """
    return await run_bounded(_read_sync, Path(path), timeout=timeout)


async def read_value(path: Union[str, Path], timeout: float = DEFAULT_READ_TIMEOUT) -> str:
    """Read a single-value attribute file, stripped of surrounding whitespace."""
    return (await read_text(path, timeout)).strip()


async def read_int(path: Union[str, Path], timeout: float = DEFAULT_READ_TIMEOUT) -> int:
    """Read a single-value attribute file as an integer.

    Raises:
        ValueError: The file does not hold an integer
    """
    return int(await read_value(path, timeout))


async def list_dir(path: Union[str, Path], timeout: float = DEFAULT_READ_TIMEOUT) -> List[str]:
    """Entries of a kernel directory, in the kernel's own order."""
    return await run_bounded(_list_sync, Path(path), timeout=timeout)
