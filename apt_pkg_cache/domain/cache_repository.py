from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple

from .cache_key import CacheKey
from .manifest import Manifest


class CacheRepository(ABC):
    """
    Abstract repository interface for a cached package installation.

    One repository owns one cache directory holding the cache key pair,
    the manifest and the archive of installed files.
    """

    @abstractmethod
    def write_key(self, cache_key: CacheKey) -> None:
        """
        Store the cache key plaintext and digest.

        Args:
            cache_key: The key addressing this installation
        """
        pass

    @abstractmethod
    def read_key(self) -> Tuple[str, bytes]:
        """
        Read back the stored cache key, validating its digest.

        Returns:
            The plaintext key and its digest

        Raises:
            NotFoundError: If no key has been written
            CorruptionError: If the digest does not match the plaintext
        """
        pass

    @abstractmethod
    def delete_key(self) -> None:
        """
        Remove the stored cache key pair, if any. A cache without a key is
        never a hit.
        """
        pass

    @abstractmethod
    def save_manifest(self, manifest: Manifest) -> None:
        """
        Save (or overwrite) the manifest.
        """
        pass

    @abstractmethod
    def load_manifest(self) -> Manifest:
        """
        Load the stored manifest.

        Raises:
            NotFoundError: If no manifest has been saved
            SerializationError: If the manifest cannot be parsed
        """
        pass

    @abstractmethod
    def has_archive(self) -> bool:
        """
        Check if an archive of installed files exists in the cache.
        """
        pass

    @abstractmethod
    def create_archive(self, file_paths: Sequence[str]) -> Path:
        """
        Archive the given absolute file paths into the cache.

        Returns:
            Path to the archive
        """
        pass

    @abstractmethod
    def delete_archive(self) -> None:
        """
        Remove the cached archive, if any.
        """
        pass

    @abstractmethod
    def restore_archive(self, root_dir: Path) -> List[str]:
        """
        Extract the cached archive under root_dir.

        Returns:
            The archive entry names that were restored
        """
        pass

    @abstractmethod
    def get_cache_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the cache.

        Returns:
            Dictionary containing:
            - has_key: Whether a key pair is stored
            - has_manifest: Whether a manifest is stored
            - has_archive: Whether an archive is stored
            - cache_size_bytes: Total size of all cached data
        """
        pass
