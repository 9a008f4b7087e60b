"""Domain model for APT package specs and canonical package sets."""

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Tuple

from .errors import InputValidationError


@dataclass(frozen=True, order=True)
class Package:
    """An APT package name with an optional version ("name" or "name=version")."""
    name: str
    version: str = ""

    def __str__(self) -> str:
        if self.version:
            return f"{self.name}={self.version}"
        return self.name


def parse_package(spec: str) -> Package:
    """
    Parse an APT package spec of the form "name" or "name=version".

    Raises:
        InputValidationError: If the name is empty, or a version separator
            is present with an empty version.
    """
    name, separator, version = spec.partition("=")
    if not name:
        raise InputValidationError("package name cannot be empty")
    if separator and not version:
        raise InputValidationError("package version cannot be empty if specified")
    return Package(name, version)


class PackageSet:
    """
    Ordered, deduplicated and immutable collection of packages.

    Packages are deduplicated by the exact (name, version) pair and sorted by
    name, then version. The same name with different versions is kept twice.
    """

    __slots__ = ("_packages",)

    def __init__(self, packages: Tuple[Package, ...] = ()):
        object.__setattr__(self, "_packages", tuple(sorted(set(packages))))

    @classmethod
    def build(cls, *packages: Package) -> "PackageSet":
        return cls(packages)

    def __setattr__(self, name, value):
        raise AttributeError("PackageSet is immutable")

    def __iter__(self) -> Iterator[Package]:
        return iter(self._packages)

    def __len__(self) -> int:
        return len(self._packages)

    def __getitem__(self, index: int) -> Package:
        return self._packages[index]

    def __eq__(self, other) -> bool:
        if not isinstance(other, PackageSet):
            return NotImplemented
        return self._packages == other._packages

    def __hash__(self) -> int:
        return hash(self._packages)

    def __repr__(self) -> str:
        return f"PackageSet({list(self._packages)!r})"

    def __str__(self) -> str:
        return self.serialize()

    def serialize(self) -> str:
        """Space separated package specs in canonical order."""
        return " ".join(str(pkg) for pkg in self._packages)

    def string_list(self) -> List[str]:
        return [str(pkg) for pkg in self._packages]

    def names(self) -> List[str]:
        return [pkg.name for pkg in self._packages]


def parse_package_args(args: Iterable[str]) -> PackageSet:
    """Parse package spec arguments into a canonical PackageSet."""
    packages = []
    for arg in args:
        try:
            packages.append(parse_package(arg))
        except InputValidationError as exc:
            raise InputValidationError(f"error creating package from arg {arg!r}: {exc}") from exc
    return PackageSet.build(*packages)
