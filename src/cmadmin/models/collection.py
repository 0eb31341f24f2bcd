"""Collection data models."""

from __future__ import annotations

from typing import ClassVar

from pydantic import Field

from cmadmin.models.common import NamedEntity

COLLECTION_TYPES = {"user": 1, "device": 2}


class Collection(NamedEntity):
    """A device or user collection (``SMS_Collection``)."""

    key_attr: ClassVar[str] = "collection_id"

    collection_id: str = Field(alias="CollectionID")
    name: str | None = Field(default=None, alias="Name")
    comment: str | None = Field(default=None, alias="Comment")
    collection_type: int | None = Field(default=None, alias="CollectionType")
    limit_to_collection_id: str | None = Field(default=None, alias="LimitToCollectionID")
    member_count: int | None = Field(default=None, alias="MemberCount")

    @property
    def type_name(self) -> str:
        for label, value in COLLECTION_TYPES.items():
            if value == self.collection_type:
                return label
        return "other"


class CollectionMember(NamedEntity):
    """A row of ``SMS_FullCollectionMembership``."""

    key_attr: ClassVar[str] = "resource_id"

    resource_id: int = Field(alias="ResourceID")
    collection_id: str | None = Field(default=None, alias="CollectionID")
    name: str | None = Field(default=None, alias="Name")
    is_direct: bool | None = Field(default=None, alias="IsDirect")
