import json
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import List, Optional, Sequence

from .errors import ExternalToolError, SerializationError


EXECUTION_START_MARKER = "EXECUTION-OBJ-START"
EXECUTION_END_MARKER = "EXECUTION-OBJ-END"


def command_line(name: str, args: Sequence[str]) -> str:
    """The exact command line an execution is keyed by."""
    return " ".join([name, *args])


@dataclass(frozen=True)
class Execution:
    """Result of invoking an external tool."""
    cmd: str
    combined_output: str
    exit_code: int

    def error(self) -> Optional[ExternalToolError]:
        """Gets the error if the command exited with a non-zero status."""
        if self.exit_code == 0:
            return None
        return ExternalToolError(
            f"Error encountered running {self.cmd}\n"
            f"Exited with status code {self.exit_code}; "
            f"see combined std[out,err] below:\n{self.combined_output.rstrip()}",
            combined_output=self.combined_output,
        )

    def serialize(self) -> str:
        return json.dumps(asdict(self), indent=1)

    @classmethod
    def deserialize(cls, payload: str) -> "Execution":
        try:
            data = json.loads(payload)
            return cls(
                cmd=data["cmd"],
                combined_output=data["combined_output"],
                exit_code=int(data["exit_code"]),
            )
        except (ValueError, KeyError, TypeError) as exc:
            raise SerializationError(f"Error encountered deserializing Execution object: {exc}") from exc


class Executor(ABC):
    """Capability for running external tools."""

    @abstractmethod
    def exec(self, name: str, args: List[str]) -> Execution:
        """
        Run the named tool with the given arguments to completion.

        Args:
            name: Executable name
            args: Arguments passed to the executable

        Returns:
            The Execution holding the combined output and exit code
        """
        pass
