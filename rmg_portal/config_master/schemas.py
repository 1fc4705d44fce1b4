"""Configuration master Pydantic v2 schemas."""


import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from rmg_portal.common.constants import ConfigStatus, ConfigType


class ConfigResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    type: ConfigType
    name: str
    description: Optional[str] = None
    status: ConfigStatus
    created_by: Optional[str] = None
    updated_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ConfigWrite(BaseModel):
    """Body of create / update; ``name`` is trimmed and must not be blank."""

    name: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    status: Optional[ConfigStatus] = None


class ConfigBulkStatus(BaseModel):
    ids: List[uuid.UUID] = Field(..., min_length=1)
    status: ConfigStatus
