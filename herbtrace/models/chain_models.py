# herbtrace/models/chain_models.py
from typing import Optional

from pydantic import BaseModel, Field


class ChainUpdateModel(BaseModel):
    """Body sent back by the anchoring integrator."""

    status: Optional[str] = None
    hash: Optional[str] = Field(None, min_length=1, max_length=256)
