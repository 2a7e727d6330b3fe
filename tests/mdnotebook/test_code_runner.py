"""
Tests for running code through an external interpreter
"""
import asyncio
import os
import sys

import pytest

from mdnotebook import CodeRunner, CodeRunResult, NotebookExecutionError


pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="needs a POSIX shell")


@pytest.fixture
def runner():
    """Fixture providing a runner that uses sh."""
    return CodeRunner(["sh"])


class TestCodeRunResult:
    """Test run result status strings."""

    def test_exit_status(self):
        """Test ordinary exit codes."""
        assert CodeRunResult(0, "").status == "0"
        assert CodeRunResult(127, "").status == "127"

    def test_signal_status(self):
        """Test negative return codes are signals."""
        assert CodeRunResult(-15, "").status == "signal 15"


class TestCodeRunner:
    """Test running code."""

    def test_empty_command_rejected(self):
        """Test a runner needs a command."""
        with pytest.raises(ValueError):
            CodeRunner([])

    def test_command_is_copied(self):
        """Test the runner keeps its own copy of the command."""
        command = ["sh"]
        runner = CodeRunner(command)
        command.append("-x")
        assert runner.command == ["sh"]

    def test_echo(self, runner):
        """Test the text is fed to the interpreter on stdin."""
        result = asyncio.run(runner.run("echo hi\n"))
        assert result == CodeRunResult(0, "hi\n")

    def test_nonzero_exit_is_not_an_error(self, runner):
        """Test a failing script is still a successful run."""
        result = asyncio.run(runner.run("echo before\nexit 3\n"))
        assert result.return_code == 3
        assert result.output == "before\n"
        assert result.status == "3"

    def test_stdout_and_stderr_combined(self, runner):
        """Test stderr is captured into the same output."""
        result = asyncio.run(runner.run("echo out\necho err 1>&2\necho out again\n"))
        assert result.output == "out\nerr\nout again\n"

    def test_killed_by_signal(self, runner):
        """Test a process killed by a signal."""
        result = asyncio.run(runner.run("kill -9 $$\n"))
        assert result.status == "signal 9"

    def test_empty_input(self, runner):
        """Test running an empty block."""
        result = asyncio.run(runner.run(""))
        assert result == CodeRunResult(0, "")

    def test_undecodable_output(self, runner):
        """Test invalid UTF-8 output is replaced rather than failing."""
        result = asyncio.run(runner.run("printf '\\377ok'\n"))
        assert result.output == "\ufffdok"

    def test_working_directory(self, runner, tmp_path):
        """Test the process runs in the requested directory."""
        result = asyncio.run(runner.run("pwd -P\n", cwd=str(tmp_path)))
        assert result.output.strip() == os.path.realpath(tmp_path)

    def test_environment(self):
        """Test the process gets the requested environment."""
        runner = CodeRunner(["sh"], env={"PATH": os.environ.get("PATH", ""), "GREETING": "hello"})
        result = asyncio.run(runner.run("echo $GREETING\n"))
        assert result.output == "hello\n"

    def test_other_interpreter(self):
        """Test the interpreter command is configurable."""
        runner = CodeRunner([sys.executable, "-"])
        result = asyncio.run(runner.run("print(6 * 7)\n"))
        assert result == CodeRunResult(0, "42\n")

    def test_missing_interpreter(self):
        """Test an interpreter that can't be started."""
        runner = CodeRunner(["/nonexistent/interpreter"])
        with pytest.raises(NotebookExecutionError) as exc_info:
            asyncio.run(runner.run("echo hi\n"))

        assert exc_info.value.command == ["/nonexistent/interpreter"]
        assert "/nonexistent/interpreter" in str(exc_info.value)
