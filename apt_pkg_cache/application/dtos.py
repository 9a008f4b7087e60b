from dataclasses import dataclass, field
from typing import List, Optional

from ..domain.manifest import ManifestEntry


@dataclass
class CacheRequest:
    package_args: List[str]
    version: str
    global_version: str
    os_arch: str


@dataclass
class CacheResponse:
    cache_key_hash: str
    package_version_list: str
    is_cache_hit: bool
    all_package_version_list: str = ""


@dataclass
class InstallationResult:
    success: bool
    entries: List[ManifestEntry] = field(default_factory=list)
    error_message: Optional[str] = None
