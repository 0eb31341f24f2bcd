"""Tests for Administration Service models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from cmadmin.models import (
    Collection,
    DirectRule,
    ExcludeRule,
    IncludeRule,
    QueryRule,
    ScriptResult,
    Variable,
    parse_rule,
)


class TestCollection:
    def test_from_wire(self):
        c = Collection.model_validate({
            "CollectionID": "PS100010",
            "Name": "Test Collection",
            "CollectionType": 1,
            "LimitToCollectionID": "SMS00004",
            "IsBuiltIn": False,
        })
        assert c.key == "PS100010"
        assert c.type_name == "user"
        assert c.attributes == {"IsBuiltIn": False}

    def test_to_dict_keeps_wire_names(self):
        data = {"CollectionID": "PS100010", "Name": "X", "RefreshType": 2}
        assert Collection.model_validate(data).to_dict() == data

    def test_unknown_type(self):
        assert Collection(collection_id="X", collection_type=0).type_name == "other"


class TestVariable:
    def test_from_wire(self):
        v = Variable.model_validate({"Name": "Role", "Value": None, "IsMasked": True})
        assert (v.name, v.value, v.masked) == ("Role", "", True)

    def test_matches_case_insensitive(self):
        assert Variable(name="Role").matches("ROLE")
        assert not Variable(name="Role").matches("Roles")

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            Variable(name="")

    def test_to_dict(self):
        assert Variable(name="A", value="1").to_dict() == {"Name": "A", "Value": "1", "IsMasked": False}


class TestRules:
    @pytest.mark.parametrize(
        ("data", "cls", "target"),
        [
            ({"@odata.type": "#AdminService.SMS_CollectionRuleDirect", "RuleName": "PC",
              "ResourceID": 7}, DirectRule, 7),
            ({"__CLASS": "SMS_CollectionRuleQuery", "RuleName": "Q",
              "QueryExpression": "select 1", "QueryID": 3}, QueryRule, "select 1"),
            ({"RuleName": "I", "IncludeCollectionID": "PS100001"}, IncludeRule, "PS100001"),
            ({"RuleName": "E", "ExcludeCollectionID": "PS100002"}, ExcludeRule, "PS100002"),
        ],
    )
    def test_parse(self, data, cls, target):
        rule = parse_rule(data)
        assert type(rule) is cls
        assert rule.target == target

    def test_parse_unknown(self):
        with pytest.raises(ValueError):
            parse_rule({"RuleName": "?"})

    def test_to_dict_replaces_type_marker(self):
        rule = parse_rule({"__CLASS": "SMS_CollectionRuleIncludeCollection", "RuleName": "I",
                           "IncludeCollectionID": "PS100001"})
        assert rule.to_dict() == {
            "@odata.type": "#AdminService.SMS_CollectionRuleIncludeCollection",
            "RuleName": "I",
            "IncludeCollectionID": "PS100001",
        }

    def test_direct_defaults(self):
        rule = DirectRule(resource_id=1001)
        assert rule.kind == "direct"
        assert rule.to_dict()["ResourceClassName"] == "SMS_R_System"


class TestScriptResult:
    def test_extra_fields_kept(self):
        r = ScriptResult.model_validate({"ResourceId": 1, "ScriptOutput": "ok", "TaskID": "x"})
        assert r.output == "ok"
        assert r.model_extra == {"TaskID": "x"}
