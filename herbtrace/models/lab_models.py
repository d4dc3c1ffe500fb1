# herbtrace/models/lab_models.py
from typing import Optional, Union

from pydantic import BaseModel, Field, StrictBool, StrictFloat, StrictInt, field_validator


class LabTestCreateModel(BaseModel):
    batch_id: str = Field(..., min_length=1)
    # numbers only: "10.5" as a string is rejected, like a bool for pesticide_pass
    moisture_pct: Union[StrictInt, StrictFloat]
    pesticide_pass: StrictBool
    pdf_url: Optional[str] = None

    @field_validator("moisture_pct")
    @classmethod
    def _finite(cls, v):
        if v != v or v in (float("inf"), float("-inf")):
            raise ValueError("moisture_pct must be a finite number")
        return float(v)
