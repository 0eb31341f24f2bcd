"""Tests for name resolution and wildcard matching."""

from __future__ import annotations

import pytest

from cmadmin.client.errors import AmbiguousNameError, NotFoundError, ValidationError
from cmadmin.client.resources import COLLECTION, COLLECTION_SETTINGS, DEVICE
from cmadmin.resolver import compile_glob, filter_by_pattern, has_wildcard


class TestGlob:
    def test_has_wildcard(self):
        assert has_wildcard("Temp*")
        assert has_wildcard("A?")
        assert not has_wildcard("Role")

    @pytest.mark.parametrize(
        ("pattern", "name", "expected"),
        [
            ("Temp*", "TempA", True),
            ("Temp*", "Temp", True),
            ("Temp*", "MyTemp", False),
            ("temp?", "TEMPA", True),
            ("Temp?", "TempAB", False),
            ("*", "", True),
            ("A.B", "AxB", False),
            ("[x]", "[x]", True),
        ],
    )
    def test_compile_glob(self, pattern, name, expected):
        assert bool(compile_glob(pattern).match(name)) is expected

    def test_filter_by_pattern_dicts(self):
        rows = [{"Name": "TempA"}, {"Name": "Role"}, {"Name": "TempB"}]
        assert filter_by_pattern(rows, "Temp*") == [{"Name": "TempA"}, {"Name": "TempB"}]

    def test_filter_by_pattern_custom_name(self):
        rows = [("a1", 1), ("b1", 2)]
        assert filter_by_pattern(rows, "b*", name_of=lambda r: r[0]) == [("b1", 2)]


class TestResolver:
    def test_resolve_collection_by_name(self, cm, site):
        assert cm.resolver.resolve(COLLECTION, name="Test Collection") == "PS100010"
        assert site.requests[0].url.params["$filter"] == "Name eq 'Test Collection'"

    def test_resolve_is_case_insensitive_on_server(self, cm, site):
        assert cm.resolver.resolve(COLLECTION, name="test collection") == "PS100010"

    def test_resolve_device_returns_int(self, cm, site):
        assert cm.resolver.resolve(DEVICE, name="WKS002") == 1002

    def test_zero_matches(self, cm, site):
        with pytest.raises(NotFoundError) as exc_info:
            cm.resolver.resolve(COLLECTION, name="Nope")
        assert exc_info.value.exit_code == 4
        assert site.writes == []

    def test_multiple_matches(self, cm, site):
        with pytest.raises(AmbiguousNameError) as exc_info:
            cm.resolver.resolve(COLLECTION, name="Dup")
        assert exc_info.value.count == 2
        assert site.writes == []

    def test_multiple_devices(self, cm, site):
        with pytest.raises(AmbiguousNameError):
            cm.resolver.resolve(DEVICE, name="DUPPC")

    def test_key_returned_without_lookup(self, cm, site):
        assert cm.resolver.resolve(COLLECTION, key="XYZ99999") == "XYZ99999"
        assert site.requests == []

    def test_numeric_key_coerced(self, cm, site):
        assert cm.resolver.resolve(DEVICE, key="1001") == 1001

    def test_non_numeric_device_key(self, cm, site):
        with pytest.raises(ValidationError):
            cm.resolver.resolve(DEVICE, key="abc")

    @pytest.mark.parametrize("kwargs", [{}, {"name": "A", "key": "B"}])
    def test_exactly_one_of_name_or_key(self, cm, site, kwargs):
        with pytest.raises(ValidationError):
            cm.resolver.resolve(COLLECTION, **kwargs)
        assert site.requests == []

    def test_lookup_returns_none(self, cm, site):
        assert cm.resolver.lookup(COLLECTION, "Nope") is None

    def test_name_lookup_needs_name_field(self, cm, site):
        with pytest.raises(ValidationError):
            cm.resolver.lookup(COLLECTION_SETTINGS, "x")

    def test_name_with_quote_is_escaped(self, cm, site):
        site.add("SMS_Collection", {"CollectionID": "PS100099", "Name": "Bob's PCs"})
        assert cm.resolver.resolve(COLLECTION, name="Bob's PCs") == "PS100099"
        assert site.requests[0].url.params["$filter"] == "Name eq 'Bob''s PCs'"

    def test_fetch(self, cm, site):
        assert cm.resolver.fetch(COLLECTION, "PS100013")["Name"] == "Servers"

    def test_fetch_missing(self, cm, site):
        with pytest.raises(NotFoundError):
            cm.resolver.fetch(COLLECTION, "PS199999")
