"""Structured compiler diagnostics and build results.

Compiler output is scanned line by line for GCC/Clang style diagnostics::

    file:line:column: error|warning: message

Lines that do not match are ignored as general log noise.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

DIAGNOSTIC_PATTERN = re.compile(r"^(.+?):(\d+):(\d+):\s*(error|warning):\s*(.+)$")


@dataclass(frozen=True)
class StructuredDiagnostic:
    """A single compiler error or warning."""

    file: str
    line: int
    column: int
    severity: str
    message: str

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}: {self.severity}: {self.message}"


@dataclass
class CompilationResult:
    """Result of a complete build request."""

    success: bool
    wasm_path: Optional[Path] = None
    js_path: Optional[Path] = None
    errors: List[StructuredDiagnostic] = field(default_factory=list)
    warnings: List[StructuredDiagnostic] = field(default_factory=list)

    @classmethod
    def from_diagnostics(
        cls,
        diagnostics: List[StructuredDiagnostic],
        wasm_path: Optional[Path] = None,
        js_path: Optional[Path] = None,
    ) -> "CompilationResult":
        """Build a result whose success is defined by the absence of errors."""
        errors = [d for d in diagnostics if d.severity == "error"]
        warnings = [d for d in diagnostics if d.severity == "warning"]
        success = not errors
        return cls(
            success=success,
            wasm_path=wasm_path if success else None,
            js_path=js_path if success else None,
            errors=errors,
            warnings=warnings,
        )

    @classmethod
    def failure(cls, file: Union[str, Path], message: str) -> "CompilationResult":
        """Build a failed result with one diagnostic at line 1, column 1.

        Used for failures that cannot be attributed to a source location,
        such as configuration errors or toolchain invocation failures.
        """
        diagnostic = StructuredDiagnostic(
            file=str(file),
            line=1,
            column=1,
            severity="error",
            message=message,
        )
        return cls(success=False, errors=[diagnostic])


def parse_compiler_output(output: str) -> List[StructuredDiagnostic]:
    """Parse compiler output into structured diagnostics.

    Args:
        output: Raw compiler output (stdout and/or stderr)

    Returns:
        Diagnostics in the order they appear
    """
    diagnostics = []
    for line in output.splitlines():
        match = DIAGNOSTIC_PATTERN.match(line)
        if not match:
            continue
        file, line_str, col_str, severity, message = match.groups()
        diagnostics.append(
            StructuredDiagnostic(
                file=file,
                line=int(line_str),
                column=int(col_str),
                severity=severity,
                message=message.strip(),
            )
        )
    return diagnostics
