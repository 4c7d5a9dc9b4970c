from dataclasses import dataclass, field
from typing import List, NoReturn, Optional, Any
from pathlib import Path

@dataclass(frozen=True)
class SourceLocation:
    """Location in source code"""
    file: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"

@dataclass
class CompileError(Exception):
    """Detailed compile error with source location and context"""
    message: str
    error_type: str = "CompilationError"  # e.g. "LexError", "ParseError", "ResolveError"
    location: Optional[SourceLocation] = None
    node: Optional[Any] = None  # declaration node if available
    context: Optional[str] = None
    notes: List[str] = field(default_factory=list)  # Additional notes/hints
    traceback: Optional[str] = None  # For internal errors, full Python traceback

    def __str__(self) -> str:
        parts = []

        # Error type and location
        loc = str(self.location) if self.location else "unknown location"
        parts.append(f"{self.error_type} at {loc}: {self.message}")

        # Source context if available
        if self.context:
            parts.append("\nContext:")
            parts.append(self.context)

        # Additional notes
        if self.notes:
            parts.append("\nNotes:")
            parts.extend(f"  - {note}" for note in self.notes)

        # Python traceback for internal errors
        if self.traceback:
            parts.append("\nPython traceback:")
            parts.append(self.traceback)

        return "\n".join(parts)

    @classmethod
    def from_exception(cls, e: Exception, location: Optional[SourceLocation] = None) -> 'CompileError':
        """Create an internal error from a Python exception with full traceback"""
        import traceback
        tb = "".join(traceback.format_exception(type(e), e, e.__traceback__))
        return InternalCompilerError(
            message=str(e),
            location=location,
            traceback=tb,
            notes=["This may be a compiler bug - please report it"]
        )


@dataclass
class InternalCompilerError(CompileError):
    """A broken invariant inside the compiler, never a problem with the input"""
    error_type: str = "InternalCompilerError"


def span_bug(location: Optional[SourceLocation], message: str) -> NoReturn:
    """Abort with an internal compiler error attached to a location"""
    raise InternalCompilerError(
        message=message,
        location=location,
        notes=["This may be a compiler bug - please report it"]
    )


def get_source_context(file_path: str, line: int, context_lines: int = 2) -> Optional[str]:
    """Get source code context around a location"""
    path = Path(file_path)
    if not path.exists():
        return None
    try:
        with open(path) as f:
            lines = f.readlines()
    except OSError:
        return None
    return format_context(lines, line, context_lines)


def format_context(lines: List[str], line: int, context_lines: int = 2) -> str:
    """Render the lines around `line` with a marker on the offending one"""
    start = max(0, line - context_lines - 1)
    end = min(len(lines), line + context_lines)

    context = []
    for i in range(start, end):
        line_num = i + 1
        prefix = '> ' if line_num == line else '  '
        context.append(f"{prefix}{line_num:4d} | {lines[i].rstrip()}")

    return '\n'.join(context)
