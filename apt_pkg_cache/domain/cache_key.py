"""Domain model for the cache key and its on-disk key pair."""

import hashlib
import hmac
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple, Union

from .errors import CorruptionError, InputValidationError, NotFoundError
from .hash_constants import HASH_ALGORITHM, KEY_FILE_MODE
from .package import PackageSet

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


@dataclass(frozen=True)
class CacheKey:
    """
    Deterministic identifier for one cached package set installation.

    The key combines the canonical package set with the user cache version,
    the global cache version and the OS architecture. Since packages are
    always held in a canonical PackageSet, logically equal keys render the
    same plaintext and hash regardless of the order packages were given in.
    """
    packages: PackageSet
    version: str
    global_version: str
    os_arch: str

    def __post_init__(self):
        missing = []
        if not self.global_version:
            missing.append("globalVersion")
        if not self.os_arch:
            missing.append("osArch")
        if missing:
            raise InputValidationError(f"cache key is missing required fields: {', '.join(missing)}")
        if not isinstance(self.packages, PackageSet):
            object.__setattr__(self, "packages", PackageSet(tuple(self.packages)))

    def plain_text(self) -> str:
        """Human readable rendering of the key; the input to hash()."""
        return (
            f"Packages: '{self.packages.serialize()}', Version: '{self.version}', "
            f"GlobalVersion: '{self.global_version}', OsArch: '{self.os_arch}'"
        )

    def hash(self) -> bytes:
        """SHA-256 digest of the plaintext."""
        return hashlib.new(HASH_ALGORITHM, self.plain_text().encode("utf-8")).digest()

    def hexdigest(self) -> str:
        return self.hash().hex()

    def write(self, plaintext_path: PathLike, hash_path: PathLike) -> None:
        """
        Writes the plaintext key and then its digest.

        If the digest cannot be written the plaintext file is removed again, so
        a half written key pair is never left behind.
        """
        plaintext_path = Path(plaintext_path)
        hash_path = Path(hash_path)

        logger.info("Writing cache key plaintext to %s.", plaintext_path)
        _write_restricted(plaintext_path, self.plain_text().encode("utf-8"))

        logger.info("Writing cache key hash to %s.", hash_path)
        try:
            _write_restricted(hash_path, self.hash())
        except OSError:
            plaintext_path.unlink(missing_ok=True)
            raise
        logger.info("Completed writing cache key.")

    @staticmethod
    def read_and_validate(plaintext_path: PathLike, hash_path: PathLike) -> Tuple[str, bytes]:
        """
        Reads a stored key pair and checks the digest against the plaintext.

        Returns:
            The plaintext and the stored digest

        Raises:
            NotFoundError: If either file is missing
            CorruptionError: If the digest length or content does not match
        """
        plaintext_bytes = _read_existing(Path(plaintext_path))
        stored_hash = _read_existing(Path(hash_path))

        expected_hash = hashlib.new(HASH_ALGORITHM, plaintext_bytes).digest()
        if len(stored_hash) != len(expected_hash):
            raise CorruptionError(
                f"cache key hash at {hash_path} has length {len(stored_hash)}, "
                f"expected {len(expected_hash)}; regenerate the cache key"
            )
        if not hmac.compare_digest(stored_hash, expected_hash):
            raise CorruptionError(
                f"cache key hash at {hash_path} does not match plaintext at {plaintext_path}; "
                "regenerate the cache key"
            )
        try:
            plaintext = plaintext_bytes.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise CorruptionError(f"cache key plaintext at {plaintext_path} is not valid UTF-8") from exc
        return plaintext, stored_hash


def _write_restricted(path: Path, content: bytes) -> None:
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, KEY_FILE_MODE)
    with os.fdopen(fd, "wb") as f:
        f.write(content)
    os.chmod(path, KEY_FILE_MODE)


def _read_existing(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except FileNotFoundError as exc:
        raise NotFoundError(f"cache key file {path} does not exist") from exc
