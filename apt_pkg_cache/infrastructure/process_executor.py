import logging
import subprocess
from typing import List, Optional

from ..domain.errors import ExternalToolError
from ..domain.executor import (
    EXECUTION_END_MARKER,
    EXECUTION_START_MARKER,
    Execution,
    Executor,
    command_line,
)


class ProcessExecutor(Executor):
    """
    Runs external tools as child processes.

    Every execution is logged at DEBUG level between EXECUTION-OBJ-START and
    EXECUTION-OBJ-END markers; a log captured that way can be fed back to
    ReplayExecutor.from_log() to replay the same session without the tools.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def exec(self, name: str, args: List[str]) -> Execution:
        cmd = command_line(name, args)
        self.logger.debug("Running command: %s", cmd)
        try:
            result = subprocess.run(
                [name, *args],
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True
            )
        except OSError as e:
            raise ExternalToolError(f"Unable to run {cmd}: {e}") from e

        execution = Execution(cmd=cmd, combined_output=result.stdout or "", exit_code=result.returncode)
        self.logger.debug(
            "%s\n%s\n%s", EXECUTION_START_MARKER, execution.serialize(), EXECUTION_END_MARKER
        )
        return execution
