"""Exception types for the MSVC toolchain layer.

Every failure raised by this package derives from ToolchainError:

- ConfigurationError: missing installation, architecture mismatch, unknown
  target type or interface. Fatal, never retried.
- ToolInvocationError (CompileFailedError, LinkFailedError): an external tool
  exited non-zero. Carries the captured output.
- DependencyExtractionError: the compile succeeded but its dependency report
  could not be read. The object file is valid, its dependency file is not.
"""

from pathlib import Path
from typing import Union


class ToolchainError(Exception):
    """Base class for toolchain failures."""

    pass


class ConfigurationError(ToolchainError):
    """Raised for configuration and programmer errors."""

    pass


class ToolchainNotFoundError(ConfigurationError):
    """Raised when no usable Visual Studio installation is found."""

    pass


class ToolInvocationError(ToolchainError):
    """Raised when an external tool exits with a non-zero status."""

    def __init__(self, tool_file: Union[str, Path], returncode: int, output: str):
        self.tool_file = Path(tool_file)
        self.returncode = returncode
        self.output = output
        super().__init__(self._format())

    def _format(self) -> str:
        message = f"{self.tool_file.name} failed with exit code {self.returncode}"
        if self.output:
            message += f"\n{self.output.rstrip()}"
        return message


class CompileFailedError(ToolInvocationError):
    """Raised when compiling a source file fails."""

    @property
    def source_file(self) -> Path:
        return self.tool_file

    def _format(self) -> str:
        message = f"Compilation failed for {self.tool_file} (exit code {self.returncode})"
        if self.output:
            message += f"\n{self.output.rstrip()}"
        return message


class LinkFailedError(ToolInvocationError):
    """Raised when linking or archiving a target fails."""

    @property
    def target_file(self) -> Path:
        return self.tool_file

    def _format(self) -> str:
        message = f"Linking failed for {self.tool_file} (exit code {self.returncode})"
        if self.output:
            message += f"\n{self.output.rstrip()}"
        return message


class DependencyExtractionError(ToolchainError):
    """Raised when a compile's dependency report is missing or malformed."""

    def __init__(self, source_file: Union[str, Path], reason: str = ""):
        self.source_file = Path(source_file)
        self.reason = reason
        message = f"Could not extract header dependencies for {self.source_file}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
