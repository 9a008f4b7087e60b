import logging
from pathlib import Path
from typing import Iterable, Optional

from ..domain.cache_key import CacheKey
from ..domain.cache_repository import CacheRepository
from ..domain.catalog_resolver import CatalogResolver
from ..domain.errors import CorruptionError, ExternalToolError, NotFoundError
from ..domain.installer import PackageInstaller
from ..domain.manifest import Manifest
from ..domain.package import PackageSet, parse_package_args
from .dtos import CacheRequest, CacheResponse


class HandleCacheRequest:
    """Orchestrates resolving, keying, installing and restoring cached packages."""

    def __init__(
        self,
        cache_repository: CacheRepository,
        resolver: CatalogResolver,
        installer: Optional[PackageInstaller] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.cache_repository = cache_repository
        self.resolver = resolver
        self.installer = installer
        self.logger = logger or logging.getLogger(__name__)

    def normalize(self, package_args: Iterable[str]) -> PackageSet:
        """Parse package arguments and resolve them against the catalog."""
        requested = parse_package_args(package_args)
        return self.resolver.resolve(requested.string_list())

    def validate(self, package_args: Iterable[str]) -> PackageSet:
        """Check every package argument resolves; raises ResolutionError otherwise."""
        resolved = self.normalize(package_args)
        for pkg in resolved:
            self.logger.info("Package %s is valid.", pkg)
        return resolved

    def build_key(self, request: CacheRequest) -> CacheKey:
        """Resolve the requested packages and derive their cache key."""
        return CacheKey(
            packages=self.normalize(request.package_args),
            version=request.version,
            global_version=request.global_version,
            os_arch=request.os_arch,
        )

    def create_key(self, request: CacheRequest) -> CacheKey:
        """Derive the cache key and write it into the cache directory."""
        cache_key = self.build_key(request)
        self.cache_repository.write_key(cache_key)
        self.logger.info("Cache key %s: %s", cache_key.hexdigest(), cache_key.plain_text())
        return cache_key

    def handle(self, request: CacheRequest, restore_root: Path) -> CacheResponse:
        """Restore from the cache on a key hit, otherwise install and cache."""
        cache_key = self.build_key(request)

        if self._is_cache_hit(cache_key):
            self.logger.info("Cache hit for key %s.", cache_key.hexdigest())
            return self.restore(restore_root, requested=cache_key.packages)

        self.logger.info("Cache miss for key %s.", cache_key.hexdigest())
        return self._install(cache_key)

    def install(self, request: CacheRequest) -> CacheResponse:
        """Install the requested packages and record them in the cache."""
        return self._install(self.build_key(request))

    def restore(self, restore_root: Path, requested: Optional[PackageSet] = None) -> CacheResponse:
        """
        Restore the cached archive under restore_root.

        The stored key pair is validated and must match the key recorded in
        the manifest before anything is extracted.
        """
        plaintext, digest = self.cache_repository.read_key()
        manifest = self.cache_repository.load_manifest()
        if manifest.cache_key.plain_text() != plaintext:
            raise CorruptionError(
                "manifest cache key does not match the stored cache key; regenerate the cache"
            )

        self.cache_repository.restore_archive(restore_root)
        self.logger.info("Completed package restoration.")
        return self._response(digest.hex(), manifest, requested, is_cache_hit=True)

    def _install(self, cache_key: CacheKey) -> CacheResponse:
        """
        Install and cache the packages. The key pair is written last and marks
        the manifest and archive as complete; until then no key is stored, so
        an interrupted or failed run is a cache miss next time.
        """
        if self.installer is None:
            raise ExternalToolError("no package installer configured")

        self.cache_repository.delete_key()

        result = self.installer.install(cache_key.packages)
        if not result.success:
            raise ExternalToolError(f"Installation failed: {result.error_message}")

        manifest = Manifest.new(cache_key)
        for entry in result.entries:
            manifest.add_entry(entry.package, entry.filepaths)
        self.cache_repository.save_manifest(manifest)

        filepaths = manifest.filepaths()
        if filepaths:
            self.cache_repository.create_archive(filepaths)
        else:
            self.logger.warning("No installed files to archive; packages were likely already installed.")
            self.cache_repository.delete_archive()

        self.cache_repository.write_key(cache_key)
        self.logger.info("Completed package installation.")
        return self._response(cache_key.hexdigest(), manifest, cache_key.packages, is_cache_hit=False)

    def _is_cache_hit(self, cache_key: CacheKey) -> bool:
        if not self.cache_repository.has_archive():
            return False
        try:
            _, digest = self.cache_repository.read_key()
        except (NotFoundError, CorruptionError) as e:
            self.logger.warning("Ignoring cached key: %s", e)
            return False
        return digest == cache_key.hash()

    def _response(self, key_hash: str, manifest: Manifest,
                  requested: Optional[PackageSet], is_cache_hit: bool) -> CacheResponse:
        names = requested.names() if requested is not None else None
        return CacheResponse(
            cache_key_hash=key_hash,
            package_version_list=manifest.package_version_list(names),
            is_cache_hit=is_cache_hit,
            all_package_version_list=manifest.package_version_list(),
        )
