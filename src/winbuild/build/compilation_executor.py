"""Compilation Executor.

This module runs external toolchain programs synchronously.

Design:
    - Every invocation gets the captured toolchain environment explicitly,
      the process environment is never modified
    - Arguments are joined into one Windows command line with the
      CommandLineToArgvW quoting rules; on Windows that exact string is what
      the child receives
    - Output is captured and returned, failures are reported by the caller
      with the tool-specific exception
    - On interruption the whole child process tree is terminated (compiler
      launchers such as sccache spawn the real compiler as a grandchild)
"""

import logging
import os
import subprocess
from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence

import psutil

from ..interrupt_utils import handle_keyboard_interrupt_properly
from .command_quoter import join_args

logger = logging.getLogger(__name__)


@dataclass
class ToolResult:
    """Result of one tool invocation."""

    command_line: str
    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Combined output, stdout first."""
        if self.stdout and self.stderr:
            return f"{self.stdout.rstrip()}\n{self.stderr}"
        return self.stdout or self.stderr


class CompilationExecutor:
    """Runs toolchain commands with a fixed environment.

    Safe to share between threads: it holds no state besides the read-only
    environment.
    """

    def __init__(self, environment: Optional[Mapping[str, str]] = None, cwd: Optional[str] = None):
        """Initialize compilation executor.

        Args:
            environment: Environment for child processes, None to inherit
            cwd: Working directory for child processes
        """
        self.environment = environment
        self.cwd = cwd

    def run(self, args: Sequence[str], merge_output: bool = False) -> ToolResult:
        """Run a command and wait for it.

        Args:
            args: Program followed by its arguments
            merge_output: Send stderr to stdout, like '2>&1'

        Returns:
            ToolResult; launching failures are reported with returncode -1
        """
        argv: List[str] = [str(a) for a in args]
        command_line = join_args(argv)
        logger.debug(f"Running: {command_line}")

        env = dict(self.environment) if self.environment is not None else None
        # CreateProcess receives the command line verbatim on Windows
        command = command_line if os.name == 'nt' else argv

        try:
            process = subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT if merge_output else subprocess.PIPE,
                stdin=subprocess.DEVNULL,
                env=env,
                cwd=self.cwd,
                text=True,
                encoding='utf-8',
                errors='replace',
            )
        except OSError as e:
            logger.error(f"Failed to launch {argv[0]}: {e}")
            return ToolResult(command_line=command_line, returncode=-1, stdout='', stderr=str(e))

        try:
            stdout, stderr = process.communicate()
        except KeyboardInterrupt as ke:
            terminate_process_tree(process.pid)
            handle_keyboard_interrupt_properly(ke)
            raise  # Never reached

        result = ToolResult(
            command_line=command_line,
            returncode=process.returncode,
            stdout=stdout or '',
            stderr=stderr or '',
        )
        if not result.success:
            logger.error(f"{os.path.basename(argv[0])} exited with {result.returncode}")
        return result


def terminate_process_tree(root_pid: int, timeout: float = 3.0) -> int:
    """Terminate a process and all of its descendants.

    Args:
        root_pid: PID of the tree's root
        timeout: Seconds to wait before killing survivors

    Returns:
        Number of processes signalled
    """
    try:
        root = psutil.Process(root_pid)
    except psutil.NoSuchProcess:
        return 0

    try:
        processes = root.children(recursive=True)
    except psutil.NoSuchProcess:
        processes = []
    processes.append(root)

    signalled = 0
    for proc in processes:
        try:
            proc.terminate()
            signalled += 1
        except psutil.NoSuchProcess:
            continue

    _gone, alive = psutil.wait_procs(processes, timeout=timeout)
    for proc in alive:
        try:
            proc.kill()
            logger.warning(f"Force killed stubborn process {proc.pid}")
        except psutil.NoSuchProcess:
            continue

    return signalled
