# herbtrace/models/collection_models.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from herbtrace.models.query_models import PageQueryModel


class GeoModel(BaseModel):
    lat: float = Field(..., ge=-90, le=90, allow_inf_nan=False)
    lng: float = Field(..., ge=-180, le=180, allow_inf_nan=False)
    accuracy_m: Optional[float] = Field(None, ge=0, allow_inf_nan=False)


class CollectionEventCreateModel(BaseModel):
    scientificName: str = Field(..., min_length=1)
    collectorId: str = Field(..., min_length=1, max_length=64)
    geo: GeoModel
    timestamp: datetime
    clientEventId: Optional[str] = Field(None, max_length=128)
    ai_verified_confidence: Optional[float] = Field(None, ge=0, le=1, allow_inf_nan=False)

    @field_validator("scientificName", "collectorId")
    @classmethod
    def _strip(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("clientEventId")
    @classmethod
    def _blank_token_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class CollectionQueryModel(PageQueryModel):
    species: Optional[str] = None
    collectorId: Optional[str] = None
    date_from: Optional[datetime] = Field(None, alias="from")
    date_to: Optional[datetime] = Field(None, alias="to")

    model_config = {"populate_by_name": True}
