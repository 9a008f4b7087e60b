"""Executor that replays recorded tool executions instead of running them."""

from pathlib import Path
from typing import Dict, Iterable, List, Union

from ..domain.errors import ExternalToolError, NotFoundError
from ..domain.executor import (
    EXECUTION_END_MARKER,
    EXECUTION_START_MARKER,
    Execution,
    Executor,
    command_line,
)


class ReplayExecutor(Executor):
    """Looks executions up by their exact command line."""

    def __init__(self, executions: Union[Iterable[Execution], Dict[str, Execution]] = ()):
        if isinstance(executions, dict):
            self.executions = dict(executions)
        else:
            self.executions = {execution.cmd: execution for execution in executions}

    @classmethod
    def from_log(cls, log_path: Union[str, Path]) -> "ReplayExecutor":
        """
        Loads every execution recorded between EXECUTION-OBJ-START and
        EXECUTION-OBJ-END markers in a debug log.
        """
        log_path = Path(log_path)
        try:
            lines = log_path.read_text(encoding="utf-8").splitlines()
        except FileNotFoundError as exc:
            raise NotFoundError(f"replay log {log_path} does not exist") from exc

        executions = []
        payload: List[str] = []
        in_payload = False
        for line in lines:
            if EXECUTION_START_MARKER in line:
                in_payload = True
                payload = []
            elif EXECUTION_END_MARKER in line and in_payload:
                executions.append(Execution.deserialize("\n".join(payload)))
                in_payload = False
            elif in_payload:
                payload.append(line)
        return cls(executions)

    def exec(self, name: str, args: List[str]) -> Execution:
        cmd = command_line(name, args)
        execution = self.executions.get(cmd)
        if execution is None:
            available = "\n" + "\n".join(sorted(self.executions)) if self.executions else " NONE"
            raise ExternalToolError(
                f"Unable to replay command '{cmd}'.\n"
                f"No command found in the replay log; available commands:{available}"
            )
        return execution
