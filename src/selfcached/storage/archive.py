from __future__ import annotations

import asyncio
import logging
import os
import shutil

logger = logging.getLogger(__name__)

TAR_BINARY = "tar"


class ArchiveError(RuntimeError):
    """Raised when a tar invocation exits with a non-zero status."""

    def __init__(self, command: list[str], exit_code: int, stderr: str) -> None:
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr
        detail = stderr.strip() or "no output"
        super().__init__(f"{' '.join(command)} failed exit_code={exit_code}: {detail}")


async def copy_path(source: str, target: str) -> None:
    """Copy a file, directory or symlink to ``target``, replacing what is there."""
    await asyncio.to_thread(_copy_path_sync, source, target)


async def remove_path(path: str) -> bool:
    """Remove ``path`` recursively. Returns False instead of raising on failure."""
    try:
        await asyncio.to_thread(_remove_path_sync, path)
    except OSError as exc:
        logger.debug("remove skipped path=%s reason=%s", path, exc)
        return False
    return True


async def make_dirs(path: str) -> None:
    await asyncio.to_thread(os.makedirs, path, exist_ok=True)


async def create_archive(source: str, archive_path: str) -> None:
    parent, base_name = os.path.split(source)
    await _run_tar(["-cf", archive_path, "-C", parent or os.sep, base_name])


async def extract_archive(archive_path: str, target_dir: str) -> None:
    await _run_tar(["-xf", archive_path, "-C", target_dir])


async def _run_tar(arguments: list[str]) -> None:
    command = [TAR_BINARY, *arguments]
    logger.debug("running %s", " ".join(command))
    process = await asyncio.create_subprocess_exec(
        *command,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    _, stderr = await process.communicate()
    if process.returncode != 0:
        raise ArchiveError(command, process.returncode or -1, stderr.decode("utf-8", "replace"))


def _copy_path_sync(source: str, target: str) -> None:
    if os.path.lexists(target):
        _remove_path_sync(target)

    if os.path.islink(source):
        os.symlink(os.readlink(source), target)
    elif os.path.isdir(source):
        shutil.copytree(source, target, symlinks=True)
    else:
        shutil.copy2(source, target)


def _remove_path_sync(path: str) -> None:
    if os.path.isdir(path) and not os.path.islink(path):
        shutil.rmtree(path)
    elif os.path.lexists(path):
        os.remove(path)
