from __future__ import annotations

from dataclasses import dataclass, field


class PedigreeCoreError(Exception):
    """Base class for all errors raised by pedigree-core."""


@dataclass(eq=False)
class ConflictingAttributeError(PedigreeCoreError):
    """Raised when a genome attribute is recorded twice with different values.

    Never recovered: the pedigree input is self-contradictory.
    """

    genome: str
    attribute: str
    existing: str
    requested: str

    def __str__(self) -> str:
        return (
            f"Conflicting {self.attribute} definitions for individual {self.genome}: "
            f"'{self.existing}' vs '{self.requested}'"
        )


class PedigreeQueryError(PedigreeCoreError, ValueError):
    """Raised for malformed graph queries (bad filters, bad filter arguments)."""


@dataclass(eq=False)
class PedigreeError(PedigreeCoreError):
    """A family failed validation.

    Callers inferring many families may skip the offending one instead of
    aborting the whole pedigree.
    """

    sample: str
    reason: str

    def __str__(self) -> str:
        return self.reason


class SameParentError(PedigreeError):
    """Father and mother are the same sample."""


class ParentAsChildError(PedigreeError):
    """A sample is both a parent and a child in one family."""


class WrongParentCountError(PedigreeError):
    """A child does not have exactly two parents, or a pedigree does not have exactly two."""


class DuplicateParentError(PedigreeError):
    """A child names the same parent twice."""


class NonFamilyParentError(PedigreeError):
    """A child has a parent outside the family's father/mother pair."""


class UnresolvedParentSexError(PedigreeError):
    """Father and mother cannot be told apart under strict sex rules."""


class PedigreeCycleError(PedigreeCoreError):
    """The families contain a generational cycle, so no processing order exists."""

    def __init__(self, message: str, unresolved: list[tuple[str, str]] | None = None):
        super().__init__(message)
        self.unresolved = unresolved or []


@dataclass(eq=False)
class PedigreeFormatError(PedigreeCoreError):
    """Malformed pedigree input (PED, relations, or VCF header)."""

    reason: str
    line: str | None = None
    line_number: int | None = field(default=None)

    def __str__(self) -> str:
        base = self.reason
        if self.line is not None:
            where = f" (line {self.line_number})" if self.line_number is not None else ""
            base += f"{where}: '{self.line}'"
        return base
