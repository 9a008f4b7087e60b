"""Tar utility for archiving installed files and restoring them."""
import logging
import os
import stat
import tarfile
from pathlib import Path
from typing import List, Sequence, Union

from .errors import InputValidationError, NotFoundError, UnsupportedFileTypeError

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


def archive_name(abs_path: str) -> str:
    """Archive entry name for an absolute path: the path relative to the root."""
    return abs_path.lstrip(os.sep)


class TarUtil:
    """Utility class for creating and extracting installed file archives."""

    @staticmethod
    def create_archive(dest_path: PathLike, file_paths: Sequence[str]) -> None:
        """
        Creates a tar at dest_path holding every file in file_paths.

        Entries are named by their absolute path without the leading separator,
        so extracting at the filesystem root restores the original locations.
        Symlinks are stored as links; their resolved target is stored as well
        when it exists and is not a directory.

        Args:
            dest_path: Path where the tar file should be created
            file_paths: Absolute paths of regular files and symlinks

        Raises:
            InputValidationError: If dest_path or file_paths are empty, or a
                path is not absolute
            UnsupportedFileTypeError: If an input is not a regular file or symlink
            NotFoundError: If an input does not exist
        """
        if not dest_path:
            raise InputValidationError("destination path cannot be empty")
        if not file_paths:
            raise InputValidationError("no files provided")
        relative = [p for p in file_paths if not os.path.isabs(p)]
        if relative:
            raise InputValidationError(f"archive inputs must be absolute paths: {', '.join(relative)}")

        dest_path = Path(dest_path)
        dest_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with tarfile.open(dest_path, "w") as tar:
                for abs_path in file_paths:
                    TarUtil._add_path(tar, abs_path)
        except BaseException:
            dest_path.unlink(missing_ok=True)
            raise
        logger.info("Archived %d file(s) to %s.", len(file_paths), dest_path)

    @staticmethod
    def _add_path(tar: tarfile.TarFile, abs_path: str) -> None:
        try:
            info = os.lstat(abs_path)
        except FileNotFoundError as exc:
            raise NotFoundError(f"file {abs_path} does not exist") from exc

        if stat.S_ISREG(info.st_mode):
            TarUtil._add_regular_file(tar, abs_path, archive_name(abs_path))
        elif stat.S_ISLNK(info.st_mode):
            TarUtil._add_symlink(tar, abs_path)
        else:
            raise UnsupportedFileTypeError(f"file {abs_path} is not a regular file or symlink")

    @staticmethod
    def _add_regular_file(tar: tarfile.TarFile, path: str, arcname: str) -> None:
        # gettarinfo on an open file describes what the file object refers to,
        # which for a symlink target is the final regular file.
        with open(path, "rb") as f:
            member = tar.gettarinfo(arcname=arcname, fileobj=f)
            tar.addfile(member, f)

    @staticmethod
    def _add_symlink(tar: tarfile.TarFile, abs_path: str) -> None:
        link_target = os.readlink(abs_path)
        member = tar.gettarinfo(abs_path, arcname=archive_name(abs_path))
        member.linkname = archive_name(link_target) if os.path.isabs(link_target) else link_target
        tar.addfile(member)

        target_path = os.path.normpath(os.path.join(os.path.dirname(abs_path), link_target))
        if os.path.exists(target_path) and not os.path.isdir(target_path):
            logger.debug("Archiving symlink target %s of %s.", target_path, abs_path)
            TarUtil._add_regular_file(tar, target_path, archive_name(target_path))

    @staticmethod
    def extract_archive(archive_path: PathLike, root_dir: PathLike) -> List[str]:
        """
        Extracts an archive created by create_archive() under root_dir.

        Returns:
            The archive entry names that were extracted
        """
        archive_path = Path(archive_path)
        if not archive_path.is_file():
            raise NotFoundError(f"archive {archive_path} does not exist")

        with tarfile.open(archive_path, "r") as tar:
            names = tar.getnames()
            tar.extractall(path=root_dir, filter="fully_trusted")
        logger.info("Restored %d file(s) from %s to %s.", len(names), archive_path, root_dir)
        return names
