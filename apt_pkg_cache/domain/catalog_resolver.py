"""Resolution of requested package names against the APT catalog."""

import logging
import re
from typing import Iterable, List, Optional

from .errors import InputValidationError, ResolutionError
from .executor import Executor
from .package import Package, PackageSet


SHOW_ARGS = ["--quiet=0", "--no-all-versions", "show"]
DIAGNOSTIC_FIELDS = ("N", "E")
# e.g. N: Can't select versions from package 'libvips' as it is purely virtual
VIRTUAL_PACKAGE_MARKER = "as it is purely virtual"
VIRTUAL_PACKAGE_PATTERN = re.compile(r"'(?P<name>[^']+)' as it is purely virtual")
REVERSE_PROVIDES_MARKER = "Reverse Provides"
# e.g. N: There are 2 additional records. Please use the '-a' switch to see them.
ADDITIONAL_RECORDS_NOTE = "additional record"
NO_PACKAGES_FOUND_NOTE = "No packages found"


def has_diagnostics(output: str) -> bool:
    """True if any line of the catalog output is an APT N:/E: diagnostic."""
    return any(line.startswith(("N: ", "E: ")) for line in output.splitlines())


class CatalogResolver:
    """
    Resolves raw package names into concrete name/version pairs using the
    APT catalog tool (apt-cache).

    All names are queried in a single batch. Virtual packages fall back to
    the first concrete provider reported by a secondary showpkg query.
    Resolution never partially succeeds: any diagnostic fails the batch.
    """

    def __init__(self, executor: Executor, tool: str = "apt-cache",
                 logger: Optional[logging.Logger] = None):
        self.executor = executor
        self.tool = tool
        self.logger = logger or logging.getLogger(__name__)

    def resolve(self, names: Iterable[str]) -> PackageSet:
        """
        Resolve package names to a canonical PackageSet.

        Raises:
            InputValidationError: If no names were given
            ExternalToolError: If the catalog tool itself failed to run
            ResolutionError: If any name could not be resolved
        """
        names = list(names)
        if not names:
            raise InputValidationError("at least one package name is required")

        self.logger.info("Resolving %d package name(s) against the APT catalog.", len(names))
        execution = self.executor.exec(self.tool, SHOW_ARGS + names)
        error = execution.error()
        if error is not None:
            # apt-cache exits with 100 for unknown names; anything without
            # APT diagnostics is a failure of the tool itself.
            if not has_diagnostics(execution.combined_output):
                raise error
            raise ResolutionError([str(error)])

        packages: List[Package] = []
        diagnostics: List[str] = []
        for paragraph in execution.combined_output.split("\n\n"):
            paragraph = paragraph.strip()
            if not paragraph:
                continue
            packages.extend(self._resolve_paragraph(paragraph, diagnostics))

        if diagnostics:
            for diagnostic in diagnostics:
                self.logger.debug("Resolution diagnostic: %s", diagnostic)
            raise ResolutionError(diagnostics)

        resolved = PackageSet.build(*packages)
        self.logger.info("Resolved packages: %s", resolved.serialize())
        return resolved

    def _resolve_paragraph(self, paragraph: str, diagnostics: List[str]) -> List[Package]:
        """
        Every record in a paragraph. APT notes are not separated from the
        records around them, so one paragraph can hold virtual package notes
        and Package records together.
        """
        records: List[Package] = []
        name = ""
        version = ""
        seen_virtual = False

        for line in paragraph.splitlines():
            field, separator, value = line.partition(":")
            if not separator:
                self.logger.debug("Skipping invalid line: %s", line)
                continue
            value = value.strip()

            if field == "Package":
                if name:
                    records.append(Package(name, version))
                name, version = value, ""
            elif field == "Version":
                version = value
            elif field in DIAGNOSTIC_FIELDS:
                if field == "N" and VIRTUAL_PACKAGE_MARKER in value:
                    seen_virtual = True
                    provider = self._resolve_virtual_line(line, value, diagnostics)
                    if provider is not None:
                        records.append(provider)
                    continue
                if field == "N" and ADDITIONAL_RECORDS_NOTE in value:
                    self.logger.debug("Ignoring catalog note: %s", line)
                    continue
                # Trails the virtual notes when no concrete record was shown.
                if field == "N" and seen_virtual and value == NO_PACKAGES_FOUND_NOTE:
                    self.logger.debug("Ignoring catalog note: %s", line)
                    continue
                _append_unique(diagnostics, line.strip())

        if name:
            records.append(Package(name, version))
        return records

    def _resolve_virtual_line(self, line: str, value: str, diagnostics: List[str]) -> Optional[Package]:
        match = VIRTUAL_PACKAGE_PATTERN.search(value)
        if match is None:
            _append_unique(diagnostics, line.strip())
            return None

        virtual_name = match.group("name")
        provider = self.get_concrete_provider(virtual_name)
        if provider is None:
            _append_unique(
                diagnostics,
                f"virtual package '{virtual_name}' has no concrete package providers available",
            )
            return None
        self.logger.info("Resolved virtual package %s to %s.", virtual_name, provider)
        return provider

    def get_concrete_provider(self, virtual_name: str) -> Optional[Package]:
        """
        Looks up the first concrete package providing a virtual package.

        Returns None when the catalog lists no reverse provides.
        """
        execution = self.executor.exec(self.tool, ["showpkg", virtual_name])
        error = execution.error()
        if error is not None:
            raise error

        lines = execution.combined_output.splitlines()
        for index, line in enumerate(lines):
            if not line.startswith(REVERSE_PROVIDES_MARKER):
                continue
            if index + 1 >= len(lines):
                return None
            provider_line = lines[index + 1]
            if provider_line.startswith(("N: ", "E: ")):
                return None
            words = provider_line.split()
            if len(words) < 2:
                return None
            return Package(words[0], words[1])
        return None


def _append_unique(items: List[str], item: str) -> None:
    if item not in items:
        items.append(item)
