import logging
import os
import platform
from pathlib import Path
from typing import List, Optional

from ..application.dtos import CacheRequest, CacheResponse
from ..application.handle_cache_request import HandleCacheRequest
from ..domain.catalog_resolver import CatalogResolver
from ..domain.executor import Executor
from ..domain.installer import AptInstaller
from ..infrastructure.file_system_cache_repository import FileSystemCacheRepository
from ..infrastructure.process_executor import ProcessExecutor
from ..infrastructure.replay_executor import ReplayExecutor

logger = logging.getLogger(__name__)


class Config:
    def __init__(
        self,
        command: str,
        packages: List[str],
        cache_dir: Optional[str] = None,
        version: str = "",
        global_version: str = "",
        os_arch: Optional[str] = None,
        restore_root: str = "/",
        replay_file: Optional[str] = None,
        github_output: Optional[str] = None,
        verbose: bool = False
    ):
        self.command = command
        self.packages = packages
        self.cache_dir = cache_dir
        self.version = version
        self.global_version = global_version
        self.os_arch = os_arch or platform.machine()
        self.restore_root = restore_root
        self.replay_file = replay_file
        self.github_output = github_output if github_output is not None else os.environ.get("GITHUB_OUTPUT")
        self.verbose = verbose

    def cache_request(self) -> CacheRequest:
        return CacheRequest(
            package_args=self.packages,
            version=self.version,
            global_version=self.global_version,
            os_arch=self.os_arch,
        )


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_executor(config: Config) -> Executor:
    """Replay recorded executions when a replay file is given, otherwise run the tools."""
    if config.replay_file:
        logger.info("Replaying tool executions from %s.", config.replay_file)
        return ReplayExecutor.from_log(config.replay_file)
    return ProcessExecutor()


def initialize_handler(config: Config, executor: Optional[Executor] = None) -> HandleCacheRequest:
    executor = executor or create_executor(config)
    cache_dir = Path(config.cache_dir) if config.cache_dir else Path.cwd()
    return HandleCacheRequest(
        cache_repository=FileSystemCacheRepository(cache_dir),
        resolver=CatalogResolver(executor),
        installer=AptInstaller(executor),
    )


def write_github_outputs(path: str, response: CacheResponse) -> None:
    """Appends the package version lists to a GitHub Actions output file."""
    with open(path, "a", encoding="utf-8") as f:
        f.write(f"cache-key={response.cache_key_hash}\n")
        f.write(f"cache-hit={str(response.is_cache_hit).lower()}\n")
        f.write(f"package-version-list={response.package_version_list}\n")
        f.write(f"all-package-version-list={response.all_package_version_list}\n")
    logger.info("GitHub outputs written to %s.", path)


def run_command(config: Config, handler: HandleCacheRequest) -> Optional[str]:
    """
    Run one CLI command.

    Returns:
        Text to print on stdout, if the command produces any
    """
    if config.command == "normalized-list":
        return handler.normalize(config.packages).serialize()

    if config.command == "validate":
        handler.validate(config.packages)
        return None

    if config.command == "createkey":
        return handler.create_key(config.cache_request()).hexdigest()

    if config.command == "install":
        response = handler.install(config.cache_request())
    elif config.command == "restore":
        response = handler.restore(Path(config.restore_root))
    elif config.command == "cache":
        response = handler.handle(config.cache_request(), Path(config.restore_root))
    else:
        raise ValueError(f"Unsupported command: {config.command}")

    if config.github_output:
        write_github_outputs(config.github_output, response)
    return response.package_version_list
