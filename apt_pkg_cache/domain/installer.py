import logging
import os
import re
import stat
from abc import ABC, abstractmethod
from typing import List, Optional

from .executor import Executor
from .manifest import ManifestEntry
from .package import Package, PackageSet
from ..application.dtos import InstallationResult

# e.g. Setting up libgtk-3-0:amd64 (3.24.33-1ubuntu2) ...
SETTING_UP_PATTERN = re.compile(r"^Setting up (?P<name>[^\s:]+)(?::\S+)? \((?P<version>[^)]+)\)")


class PackageInstaller(ABC):
    """Abstract base class for system package installers."""

    @abstractmethod
    def install(self, packages: PackageSet) -> InstallationResult:
        """Install the packages and report the files every installed package produced."""
        pass


class AptInstaller(PackageInstaller):
    """Installer for APT packages."""

    def __init__(self, executor: Executor, tool: str = "apt-get",
                 extra_args: Optional[List[str]] = None,
                 logger: Optional[logging.Logger] = None):
        self.executor = executor
        self.tool = tool
        self.extra_args = extra_args or []
        self.logger = logger or logging.getLogger(__name__)

    def install(self, packages: PackageSet) -> InstallationResult:
        """Install packages with apt-get and list the files of each installed package."""
        if not len(packages):
            return InstallationResult(success=False, entries=[], error_message="no packages to install")

        args = ["install", "--yes", "--no-install-recommends"]
        args.extend(self.extra_args)
        args.extend(packages.string_list())

        self.logger.info("Installing packages: %s", packages.serialize())
        execution = self.executor.exec(self.tool, args)
        error = execution.error()
        if error is not None:
            return InstallationResult(
                success=False,
                entries=[],
                error_message=f"{self.tool} install failed: {error}"
            )

        installed = self.parse_installed_packages(execution.combined_output)
        if not installed:
            self.logger.info("Skipping packages that are already installed.")

        entries = []
        for pkg in installed:
            files = self.list_installed_files(pkg)
            self.logger.debug("Package %s installed files:\n%s", pkg, "\n".join(files))
            entries.append(ManifestEntry(pkg, files))

        self.logger.info("Completed installing packages.")
        return InstallationResult(success=True, entries=entries, error_message=None)

    @staticmethod
    def parse_installed_packages(output: str) -> List[Package]:
        """Packages configured by an install run, in the order they were set up."""
        installed = []
        for line in output.splitlines():
            match = SETTING_UP_PATTERN.match(line)
            if match:
                pkg = Package(match.group("name"), match.group("version"))
                if pkg not in installed:
                    installed.append(pkg)
        return installed

    def list_installed_files(self, pkg: Package) -> List[str]:
        """
        Lists the files installed by a package.

        Directories and paths that are not on disk are dropped so that only
        regular files and symlinks are recorded.
        """
        execution = self.executor.exec("dpkg", ["-L", pkg.name])
        error = execution.error()
        if error is not None:
            raise error

        files = []
        for line in execution.combined_output.splitlines():
            path = line.strip()
            if not os.path.isabs(path) or path == "/.":
                continue
            try:
                mode = os.lstat(path).st_mode
            except FileNotFoundError:
                continue
            if stat.S_ISREG(mode) or stat.S_ISLNK(mode):
                files.append(path)
        return files
