"""Collection membership rule models."""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field

ODATA_TYPE = "@odata.type"


class MembershipRule(BaseModel):
    """Base for the four membership rule variants."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    kind: ClassVar[str] = ""
    wmi_class: ClassVar[str] = ""

    rule_name: str = Field(default="", alias="RuleName")

    @property
    def target(self) -> str | int:
        """The resource key, query, or collection key this rule points at."""
        raise NotImplementedError

    def to_dict(self) -> dict[str, Any]:
        data = self.model_dump(by_alias=True, exclude_none=True)
        data.pop(ODATA_TYPE, None)
        data.pop("__CLASS", None)
        return {ODATA_TYPE: f"#AdminService.{self.wmi_class}", **data}


class DirectRule(MembershipRule):
    kind: ClassVar[str] = "direct"
    wmi_class: ClassVar[str] = "SMS_CollectionRuleDirect"

    resource_id: int = Field(alias="ResourceID")
    resource_class_name: str = Field(default="SMS_R_System", alias="ResourceClassName")

    @property
    def target(self) -> int:
        return self.resource_id


class QueryRule(MembershipRule):
    kind: ClassVar[str] = "query"
    wmi_class: ClassVar[str] = "SMS_CollectionRuleQuery"

    query_expression: str = Field(alias="QueryExpression")
    query_id: int | None = Field(default=None, alias="QueryID")

    @property
    def target(self) -> str:
        return self.query_expression


class IncludeRule(MembershipRule):
    kind: ClassVar[str] = "include"
    wmi_class: ClassVar[str] = "SMS_CollectionRuleIncludeCollection"

    include_collection_id: str = Field(alias="IncludeCollectionID")

    @property
    def target(self) -> str:
        return self.include_collection_id


class ExcludeRule(MembershipRule):
    kind: ClassVar[str] = "exclude"
    wmi_class: ClassVar[str] = "SMS_CollectionRuleExcludeCollection"

    exclude_collection_id: str = Field(alias="ExcludeCollectionID")

    @property
    def target(self) -> str:
        return self.exclude_collection_id


RULE_TYPES: dict[str, type[MembershipRule]] = {
    cls.kind: cls for cls in (DirectRule, QueryRule, IncludeRule, ExcludeRule)
}
_BY_CLASS = {cls.wmi_class: cls for cls in RULE_TYPES.values()}
_BY_FIELD = {
    "ResourceID": DirectRule,
    "QueryExpression": QueryRule,
    "IncludeCollectionID": IncludeRule,
    "ExcludeCollectionID": ExcludeRule,
}


def parse_rule(data: dict[str, Any]) -> MembershipRule:
    """Build the right rule variant from a server payload.

    The variant is taken from ``@odata.type`` or ``__CLASS`` when the server
    sends one, otherwise from the variant's distinguishing property.
    """
    class_name = str(data.get(ODATA_TYPE) or data.get("__CLASS") or "")
    class_name = class_name.rsplit(".", 1)[-1]
    rule_cls = _BY_CLASS.get(class_name)
    if rule_cls is None:
        for field, candidate in _BY_FIELD.items():
            if field in data:
                rule_cls = candidate
                break
    if rule_cls is None:
        raise ValueError(f"Unrecognized membership rule: {sorted(data)}")
    return rule_cls.model_validate(data)
