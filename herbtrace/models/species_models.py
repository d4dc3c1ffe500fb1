# herbtrace/models/species_models.py
from typing import List

from pydantic import BaseModel, Field, field_validator


class SpeciesSeedModel(BaseModel):
    scientificName: str = Field(..., min_length=1)
    speciesCode: str = Field(..., min_length=1, max_length=16)
    vernaculars: List[str] = Field(default_factory=list)
    seasonMonths: List[int] = Field(default_factory=list)

    @field_validator("scientificName")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("scientificName must not be blank")
        return v

    @field_validator("speciesCode")
    @classmethod
    def _code_is_key_safe(cls, v: str) -> str:
        v = (v or "").strip()
        if not v or "-" in v or any(c.isspace() for c in v):
            raise ValueError("speciesCode must be non-empty and free of '-' and spaces")
        return v

    @field_validator("seasonMonths")
    @classmethod
    def _months_in_range(cls, v: List[int]) -> List[int]:
        bad = [m for m in v if m < 1 or m > 12]
        if bad:
            raise ValueError(f"seasonMonths must be 1..12, got {bad}")
        return sorted(set(v))
