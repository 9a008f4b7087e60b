"""Domain model for the manifest of files produced by an installation."""

import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Union

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from .cache_key import CacheKey
from .errors import InputValidationError, NotFoundError, SerializationError
from .package import Package, PackageSet

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


class PackageDocument(BaseModel):
    name: str = Field(..., min_length=1, description="APT package name")
    version: str = Field("", description="APT package version")


class CacheKeyDocument(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    packages: List[PackageDocument] = Field(..., description="Canonical package set")
    version: str = Field("", description="User cache version")
    global_version: str = Field(..., alias="globalVersion", description="Global cache version")
    os_arch: str = Field(..., alias="osArch", description="OS architecture")


class ManifestEntryDocument(BaseModel):
    package: PackageDocument
    filepaths: List[str] = Field(default_factory=list, description="Absolute installed file paths")


class ManifestDocument(BaseModel):
    """JSON document persisted as manifest.json."""
    model_config = ConfigDict(populate_by_name=True)

    cache_key: CacheKeyDocument = Field(..., alias="cacheKey")
    last_modified: AwareDatetime = Field(..., alias="lastModified")
    entries: List[ManifestEntryDocument] = Field(default_factory=list)


@dataclass(frozen=True)
class ManifestEntry:
    """A package and the files its installation produced."""
    package: Package
    filepaths: List[str] = field(default_factory=list)


@dataclass
class Manifest:
    """Associates a cache key with the files each installed package produced."""
    cache_key: CacheKey
    last_modified: datetime
    entries: List[ManifestEntry] = field(default_factory=list)

    @classmethod
    def new(cls, cache_key: CacheKey) -> "Manifest":
        return cls(cache_key=cache_key, last_modified=datetime.now(timezone.utc))

    def add_entry(self, package: Package, filepaths: Iterable[str]) -> None:
        """Appends an entry; entries keep installation order."""
        self.entries.append(ManifestEntry(package, list(filepaths)))

    def packages(self) -> PackageSet:
        return PackageSet.build(*(entry.package for entry in self.entries))

    def filepaths(self) -> List[str]:
        return [path for entry in self.entries for path in entry.filepaths]

    def package_version_list(self, names: Optional[Iterable[str]] = None) -> str:
        """
        Compact "name-version,name-version" summary in installed order.

        Args:
            names: Optionally restrict the summary to these package names
        """
        wanted = set(names) if names is not None else None
        return ",".join(
            f"{entry.package.name}-{entry.package.version}"
            for entry in self.entries
            if wanted is None or entry.package.name in wanted
        )

    def to_document(self) -> ManifestDocument:
        key = self.cache_key
        return ManifestDocument(
            cache_key=CacheKeyDocument(
                packages=[PackageDocument(name=p.name, version=p.version) for p in key.packages],
                version=key.version,
                global_version=key.global_version,
                os_arch=key.os_arch,
            ),
            last_modified=self.last_modified,
            entries=[
                ManifestEntryDocument(
                    package=PackageDocument(name=e.package.name, version=e.package.version),
                    filepaths=list(e.filepaths),
                )
                for e in self.entries
            ],
        )

    @classmethod
    def from_document(cls, document: ManifestDocument) -> "Manifest":
        key_document = document.cache_key
        cache_key = CacheKey(
            packages=PackageSet.build(*(Package(p.name, p.version) for p in key_document.packages)),
            version=key_document.version,
            global_version=key_document.global_version,
            os_arch=key_document.os_arch,
        )
        return cls(
            cache_key=cache_key,
            last_modified=document.last_modified.astimezone(timezone.utc),
            entries=[
                ManifestEntry(Package(e.package.name, e.package.version), list(e.filepaths))
                for e in document.entries
            ],
        )

    def to_json(self) -> str:
        return self.to_document().model_dump_json(indent=2, by_alias=True)

    def write(self, path: PathLike) -> None:
        """
        Writes the manifest as indented JSON, replacing any existing file.

        The document is rendered in memory and moved into place with an atomic
        rename, so readers never observe a partially written manifest.
        """
        path = Path(path)
        content = self.to_json()

        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.info("Manifest written to %s.", path)

    @classmethod
    def read(cls, path: PathLike) -> "Manifest":
        """
        Reads a manifest written by write().

        Raises:
            NotFoundError: If the file does not exist
            SerializationError: If the file is not a valid manifest document
        """
        path = Path(path)
        try:
            content = path.read_bytes()
        except FileNotFoundError as exc:
            raise NotFoundError(f"manifest {path} does not exist") from exc

        try:
            return cls.from_document(ManifestDocument.model_validate_json(content))
        except (PydanticValidationError, InputValidationError) as exc:
            raise SerializationError(f"failed to parse manifest at {path}: {exc}") from exc

