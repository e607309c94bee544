from enum import Enum
from typing import List, Optional

from pydantic import Field, field_validator

from .base import CamelModel, DocumentBase


class MemberClientType(str, Enum):
    INDIVIDUAL = "individual"
    CORPORATE = "corporate"


class GroupMember(CamelModel):
    client_id: str = Field(min_length=1)
    client_type: MemberClientType

    @field_validator("client_type", mode="before")
    @classmethod
    def lowercase_client_type(cls, value):
        return value.lower() if isinstance(value, str) else value


class GroupFields(CamelModel):
    group_name: str = Field(min_length=1)
    description: Optional[str] = None
    members: List[GroupMember] = Field(default_factory=list)


class GroupCreate(GroupFields):
    group_code: Optional[str] = None


class GroupDB(DocumentBase, GroupFields):
    group_code: Optional[str] = None # assigned on insert
