# herbtrace/models/processing_models.py

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator


class ProcessingStepCreateModel(BaseModel):
    batch_id: str = Field(..., min_length=1)
    step_type: str = Field(..., min_length=1, max_length=32)
    status: str = Field(default="COMPLETED")
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    params: Dict[str, Any] = Field(default_factory=dict)
    post_step_metrics: Dict[str, Any] = Field(default_factory=dict)
    notes: Optional[str] = ""

    @field_validator("step_type", "status")
    @classmethod
    def _upper(cls, v: str) -> str:
        v = (v or "").strip().upper()
        if not v:
            raise ValueError("must not be blank")
        return v
