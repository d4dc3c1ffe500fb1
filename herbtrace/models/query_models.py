# herbtrace/models/query_models.py
from typing import Optional

from pydantic import BaseModel, Field


class PageQueryModel(BaseModel):
    page: int = Field(1, ge=1)
    page_size: Optional[int] = Field(None, ge=1)


class LabTestQueryModel(PageQueryModel):
    batch_id: Optional[str] = None


class ChainQueryModel(PageQueryModel):
    status: str = "READY"
