"""Error types for the IOLP import pipeline.

Field-level problems (ParseError) are recovered where they happen and never
leave the row mapper. Structural problems (SourceReadError, LoadIntegrityError)
abort the run and are reported by the CLI.
"""

from dataclasses import dataclass, field


class IOLPError(Exception):
    """Base class for import failures surfaced to the caller."""


class ParseError(IOLPError, ValueError):
    """A single field could not be coerced to its target type."""

    def __init__(self, field_name: str, value: object):
        self.field_name = field_name
        self.value = value
        super().__init__(f"Cannot parse {field_name}: {value!r}")


class SourceReadError(IOLPError):
    """A row source is missing, unreadable, or not tabular."""


class LoadIntegrityError(IOLPError):
    """A store count did not match what the loader expected."""

    def __init__(self, table: str, expected: int, actual: int, phase: str):
        self.table = table
        self.expected = expected
        self.actual = actual
        self.phase = phase
        super().__init__(
            f"{table}: expected {expected} rows after {phase}, found {actual}"
        )


@dataclass(frozen=True)
class ClassificationGap:
    """Records left out of both ownership cohorts.

    Not an exception: unrecognized ownership codes are excluded on purpose
    and only reported.
    """

    count: int
    codes: dict[str | None, int] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return self.count > 0
