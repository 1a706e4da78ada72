"""
WhatsiPlus wire models.

Pydantic DTOs for the `receivedMessages` response. Field names follow the
upstream JSON; `from` is exposed as `sender` since it is a Python keyword.
"""

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UpstreamMessage(BaseModel):
    """A single message as reported by WhatsiPlus."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    type: Optional[str] = None
    sender: str = Field(..., alias="from")
    to: Optional[str] = None
    date: Optional[str] = None
    message: Optional[str] = None

    @field_validator("id", "sender", mode="before")
    @classmethod
    def coerce_to_str(cls, v):
        # Upstream sometimes sends numeric ids and phone numbers
        if isinstance(v, (int, float)):
            return str(int(v))
        return v

    @property
    def has_body(self) -> bool:
        return bool(self.message and self.message.strip())


class ReceivedMessagesPage(BaseModel):
    """One page of the `receivedMessages` endpoint."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    count: Optional[int] = 0
    page_count: Optional[int] = Field(default=0, alias="pageCount")
    page: Union[int, str, None] = None
    data: List[UpstreamMessage] = Field(default_factory=list)

    @field_validator("data", mode="before")
    @classmethod
    def null_data_is_empty(cls, v):
        return v or []
