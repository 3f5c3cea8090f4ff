"""Genome and relationship models for the pedigree graph.

Provides:
- Sex and relationship type enumerations (stable tag values)
- Typed per-genome attributes with a small free-form extension map
- The Relationship edge, identified by its (first, second, type) triple
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Sex(str, Enum):
    """Recorded sex of a genome."""
    MALE = "male"
    FEMALE = "female"
    EITHER = "either"  # Unknown / not recorded

    @classmethod
    def parse(cls, value: str | Sex | None) -> Sex:
        """Case-insensitive lookup; None and unrecognised strings map to EITHER."""
        if value is None:
            return cls.EITHER
        if isinstance(value, Sex):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.EITHER

    @property
    def is_known(self) -> bool:
        return self is not Sex.EITHER


class RelationshipType(str, Enum):
    """Types of pairwise genome relationships.

    The values are exported positionally (graph exports, PEDIGREE header
    lines) and must not change.
    """
    PARENT_CHILD = "PARENT_CHILD"  # first is a parent of second
    ORIGINAL_DERIVED = "ORIGINAL_DERIVED"  # second is derived from first (e.g. tumor from normal)


# Keys accepted in free-form relationship property bags
CONTAMINATION = "contamination"
REVERSE_CONTAMINATION = "reverse-contamination"


class GenomeAttributes(BaseModel):
    """Attributes recorded for a single genome.

    The named fields are the load-bearing ones; anything else a loader
    encounters lands in ``extra``.
    """
    model_config = ConfigDict(validate_assignment=True)

    sex: Sex = Sex.EITHER
    disease: bool | None = None  # None when affection status was never recorded
    primary: bool = False  # Declared explicitly rather than inferred via a relationship
    family_id: str | None = None
    extra: dict[str, str] = Field(default_factory=dict)

    def copy_from(self, other: GenomeAttributes) -> None:
        """Overwrite every field with the values from ``other``."""
        self.sex = other.sex
        self.disease = other.disease
        self.primary = other.primary
        self.family_id = other.family_id
        self.extra = dict(other.extra)


@dataclass(frozen=True)
class Relationship:
    """A typed, role-ordered edge between two genomes.

    Two relationships with the same (first, second, type) are the same edge;
    the property bag is informational and ignored for equality.
    """
    first: str
    second: str
    type: RelationshipType
    properties: dict[str, str] = field(default_factory=dict, compare=False, hash=False)

    @property
    def key(self) -> tuple[str, str, RelationshipType]:
        return (self.first, self.second, self.type)

    def involves(self, genome: str) -> bool:
        return genome == self.first or genome == self.second

    def other(self, genome: str) -> str:
        """The endpoint opposite ``genome``."""
        return self.second if genome == self.first else self.first

    def set_property(self, name: str, value: str) -> None:
        self.properties[name] = value

    def get_property(self, name: str) -> str | None:
        return self.properties.get(name)

    def _float_property(self, name: str) -> float | None:
        value = self.get_property(name)
        return None if value is None else float(value)

    @property
    def contamination(self) -> float | None:
        """Contamination level of the derived sample, if recorded."""
        return self._float_property(CONTAMINATION)

    @property
    def reverse_contamination(self) -> float | None:
        return self._float_property(REVERSE_CONTAMINATION)

    def __str__(self) -> str:
        base = f"{self.type.value} ({self.first}-{self.second})"
        if self.properties:
            base += f" :: {dict(sorted(self.properties.items()))}"
        return base
