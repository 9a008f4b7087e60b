import logging
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple

from ..domain.cache_key import CacheKey
from ..domain.cache_repository import CacheRepository
from ..domain.hash_constants import (
    ARCHIVE_FILENAME,
    CACHE_KEY_HASH_FILENAME,
    CACHE_KEY_PLAINTEXT_FILENAME,
    MANIFEST_FILENAME,
)
from ..domain.manifest import Manifest
from ..domain.tar_util import TarUtil

logger = logging.getLogger(__name__)


class FileSystemCacheRepository(CacheRepository):
    def __init__(self, cache_dir: Path):
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)

        self.key_plaintext_path = self.cache_dir / CACHE_KEY_PLAINTEXT_FILENAME
        self.key_hash_path = self.cache_dir / CACHE_KEY_HASH_FILENAME
        self.manifest_path = self.cache_dir / MANIFEST_FILENAME
        self.archive_path = self.cache_dir / ARCHIVE_FILENAME

        self.tar_util = TarUtil()

    def write_key(self, cache_key: CacheKey) -> None:
        """Write the cache key pair into the cache directory."""
        cache_key.write(self.key_plaintext_path, self.key_hash_path)

    def read_key(self) -> Tuple[str, bytes]:
        """Read and validate the cache key pair."""
        return CacheKey.read_and_validate(self.key_plaintext_path, self.key_hash_path)

    def delete_key(self) -> None:
        # Hash first: a lone plaintext file never validates.
        self.key_hash_path.unlink(missing_ok=True)
        self.key_plaintext_path.unlink(missing_ok=True)

    def save_manifest(self, manifest: Manifest) -> None:
        manifest.write(self.manifest_path)

    def load_manifest(self) -> Manifest:
        logger.info("Reading manifest from %s.", self.manifest_path)
        return Manifest.read(self.manifest_path)

    def has_archive(self) -> bool:
        """Check if the archive exists in the cache."""
        return self.archive_path.is_file()

    def create_archive(self, file_paths: Sequence[str]) -> Path:
        """Archive installed files into <cache_dir>/packages.tar."""
        self.tar_util.create_archive(self.archive_path, file_paths)
        return self.archive_path

    def delete_archive(self) -> None:
        if self.archive_path.exists():
            logger.info("Removing stale archive %s.", self.archive_path)
            self.archive_path.unlink()

    def restore_archive(self, root_dir: Path) -> List[str]:
        return self.tar_util.extract_archive(self.archive_path, root_dir)

    def get_cache_stats(self) -> Dict[str, Any]:
        """Get statistics about the cache."""
        cache_size_bytes = 0
        for path in self.cache_dir.rglob("*"):
            if path.is_file():
                cache_size_bytes += path.stat().st_size

        return {
            "has_key": self.key_plaintext_path.is_file() and self.key_hash_path.is_file(),
            "has_manifest": self.manifest_path.is_file(),
            "has_archive": self.has_archive(),
            "cache_size_bytes": cache_size_bytes
        }
