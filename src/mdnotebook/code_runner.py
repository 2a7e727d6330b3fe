"""
Run code block contents through an external interpreter.
"""

import asyncio
from dataclasses import dataclass
import logging
from typing import Dict, List

from mdnotebook.notebook_error import NotebookExecutionError


@dataclass(frozen=True)
class CodeRunResult:
    """
    Outcome of running one code block.

    Attributes:
        return_code: Process exit code, negative if the process was killed by a signal
        output: Combined stdout and stderr text
    """
    return_code: int
    output: str

    @property
    def status(self) -> str:
        """Exit status as written into an output block's info string."""
        if self.return_code < 0:
            return f"signal {-self.return_code}"

        return str(self.return_code)


class CodeRunner:
    """
    Runs text through a fixed interpreter command.

    Every run starts its own process; the text is written to the process's
    stdin and everything it writes to stdout or stderr is captured.  There is
    no timeout.
    """

    def __init__(self, command: List[str], env: Dict[str, str] | None = None) -> None:
        """
        Initialize the runner.

        Args:
            command: Interpreter command line (e.g. ["sh"])
            env: Environment for the process, or None to inherit ours

        Raises:
            ValueError: If the command is empty
        """
        if not command:
            raise ValueError("Interpreter command cannot be empty")

        self._command = list(command)
        self._env = env
        self._logger = logging.getLogger("CodeRunner")

    @property
    def command(self) -> List[str]:
        """The interpreter command line."""
        return list(self._command)

    async def run(self, text: str, cwd: str | None = None) -> CodeRunResult:
        """
        Run text through the interpreter.

        A nonzero exit is a successful run; its status is simply part of the result.

        Args:
            text: Code to send to the interpreter's stdin
            cwd: Working directory for the process, or None for ours

        Returns:
            The exit status and captured output

        Raises:
            NotebookExecutionError: If the interpreter cannot be started
        """
        self._logger.debug("running %r in %s", self._command, cwd or ".")

        try:
            process = await asyncio.create_subprocess_exec(
                *self._command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                cwd=cwd,
                env=self._env
            )

        except OSError as e:
            self._logger.error("failed to start %r: %s", self._command, e)
            raise NotebookExecutionError(f"Failed to start '{self._command[0]}': {e}", self.command) from e

        stdout, _ = await process.communicate(text.encode('utf-8'))
        assert process.returncode is not None, "Process should have exited"

        self._logger.debug("process %d exited with %d", process.pid, process.returncode)
        return CodeRunResult(process.returncode, stdout.decode('utf-8', errors='replace'))
