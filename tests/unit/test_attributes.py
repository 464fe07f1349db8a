"""Unit tests for attribute release catalog selection and resolution."""

from types import SimpleNamespace

import pytest

from saml_idp.models.saml import AttributeReleaseEntry, CustomExtractor, NamedAccessor
from saml_idp.namespaces import ATTRNAME_FORMAT_BASIC, ATTRNAME_FORMAT_URI
from saml_idp.saml.attributes import (
    build_attribute_catalog,
    get_values_for,
    normalize_values,
    resolve_attributes,
    select_attribute_catalog,
)
from saml_idp.saml.principal import underscore


class TestBuildAttributeCatalog:
    """Test release catalog normalization."""

    def test_defaults(self):
        """Test Name defaults to the friendly name and NameFormat to URI."""
        catalog = build_attribute_catalog({"GivenName": None})

        assert catalog == [
            AttributeReleaseEntry(
                friendly_name="GivenName",
                name="GivenName",
                name_format=ATTRNAME_FORMAT_URI,
                getter=None,
            )
        ]

    def test_options_mapping(self):
        """Test explicit name, name_format and getter."""
        catalog = build_attribute_catalog(
            {
                "emailAddress": {
                    "name": "email-address",
                    "name_format": ATTRNAME_FORMAT_BASIC,
                    "getter": "email",
                }
            }
        )

        entry = catalog[0]
        assert entry.name == "email-address"
        assert entry.name_format == ATTRNAME_FORMAT_BASIC
        assert entry.getter == NamedAccessor("email")

    def test_bare_getter(self):
        """Test a bare string or callable is used as the getter."""
        func = lambda p: p.last_name  # noqa: E731
        catalog = build_attribute_catalog({"GivenName": "first_name", "SurName": func})

        assert catalog[0].getter == NamedAccessor("first_name")
        assert catalog[1].getter == CustomExtractor(func)

    def test_preserves_order(self):
        """Test entries keep catalog iteration order."""
        catalog = build_attribute_catalog({"b": None, "a": None, "c": None})

        assert [entry.friendly_name for entry in catalog] == ["b", "a", "c"]


class TestSelectAttributeCatalog:
    """Test the override, principal, configuration fallback chain."""

    def test_override_wins(self):
        """Test non-empty override beats every other source."""
        principal = SimpleNamespace(asserted_attributes={"FromPrincipal": None})

        catalog = select_attribute_catalog(
            {"FromOverride": None}, principal, {"FromConfig": None}
        )

        assert [entry.friendly_name for entry in catalog] == ["FromOverride"]

    def test_empty_override_falls_through(self):
        """Test empty override is treated as absent."""
        catalog = select_attribute_catalog({}, {"email": "x"}, {"FromConfig": None})

        assert [entry.friendly_name for entry in catalog] == ["FromConfig"]

    def test_principal_catalog(self):
        """Test principal exposing asserted_attributes beats configuration."""
        principal = SimpleNamespace(asserted_attributes={"FromPrincipal": None})

        catalog = select_attribute_catalog(None, principal, {"FromConfig": None})

        assert [entry.friendly_name for entry in catalog] == ["FromPrincipal"]

    def test_principal_catalog_method(self):
        """Test asserted_attributes may be a method."""
        class Principal:
            def asserted_attributes(self):
                return {"FromMethod": None}

        catalog = select_attribute_catalog(None, Principal(), None)

        assert [entry.friendly_name for entry in catalog] == ["FromMethod"]

    def test_principal_catalog_none_stops_chain(self):
        """Test principal catalog returning None releases nothing."""
        principal = SimpleNamespace(asserted_attributes=None)

        assert select_attribute_catalog(None, principal, {"FromConfig": None}) == []

    def test_configured_catalog(self):
        """Test configuration is used when nothing else applies."""
        catalog = select_attribute_catalog(None, {"email": "x"}, {"FromConfig": None})

        assert [entry.friendly_name for entry in catalog] == ["FromConfig"]

    def test_no_catalog(self):
        """Test no source yields an empty catalog."""
        assert select_attribute_catalog(None, {"email": "x"}, {}) == []
        assert select_attribute_catalog(None, {"email": "x"}, None) == []


class TestNormalizeValues:
    """Test value wrapping."""

    @pytest.mark.parametrize(
        "result,expected",
        [
            (None, []),
            ("George", ["George"]),
            (7, ["7"]),
            (["admin", "user"], ["admin", "user"]),
            (("a", None, 3), ["a", "", "3"]),
            (["a", None, "b"], ["a", "", "b"]),
            ([], []),
        ],
    )
    def test_normalize(self, result, expected):
        """Test scalars, sequences and None."""
        assert normalize_values(result) == expected


class TestResolveAttributes:
    """Test per-attribute value resolution."""

    def test_named_and_callable_getters(self):
        """Test GivenName/SurName scenario resolves in catalog order."""
        catalog = build_attribute_catalog(
            {"GivenName": {"getter": "first_name"}, "SurName": {"getter": lambda p: p.last_name}}
        )
        principal = SimpleNamespace(first_name="George", last_name="Washington")

        resolved = resolve_attributes(catalog, principal)

        assert [(a.name, a.values) for a in resolved] == [
            ("GivenName", ["George"]),
            ("SurName", ["Washington"]),
        ]

    def test_friendly_name_underscored_when_no_getter(self):
        """Test accessor derived from the friendly name when no getter is set."""
        entry = build_attribute_catalog({"FirstName": None})[0]

        assert get_values_for(entry, {"first_name": "George"}) == ["George"]

    def test_named_getter_underscored(self):
        """Test named getters are converted to snake_case."""
        entry = build_attribute_catalog({"Mail": {"getter": "emailAddress"}})[0]

        assert get_values_for(entry, SimpleNamespace(email_address="a@b.c")) == ["a@b.c"]

    def test_missing_accessor_yields_no_values(self):
        """Test missing accessors are not an error."""
        catalog = build_attribute_catalog({"GivenName": None})

        resolved = resolve_attributes(catalog, SimpleNamespace(email="x"))

        assert resolved[0].values == []

    def test_blank_getter_releases_no_values(self):
        """Test a blank getter does not fall back to the friendly name accessor."""
        catalog = build_attribute_catalog({"email": {"getter": ""}, "phone": "  "})

        resolved = resolve_attributes(
            catalog, {"email": "foo@example.com", "phone": "555-0100"}
        )

        assert [a.values for a in resolved] == [[], []]

    def test_none_items_become_empty_values(self):
        """Test None entries in a sequence result are kept as empty values."""
        catalog = build_attribute_catalog({"Groups": {"getter": lambda p: ["a", None, "b"]}})

        resolved = resolve_attributes(catalog, {})

        assert resolved[0].values == ["a", "", "b"]

    def test_multi_valued(self):
        """Test list results produce several values."""
        catalog = build_attribute_catalog({"Roles": {"getter": "roles"}})

        resolved = resolve_attributes(catalog, {"roles": ["admin", "editor"]})

        assert resolved[0].values == ["admin", "editor"]

    def test_empty_catalog(self):
        """Test empty catalog resolves to nothing."""
        assert resolve_attributes([], {"email": "x"}) == []


class TestUnderscore:
    """Test accessor name conversion."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("GivenName", "given_name"),
            ("emailAddress", "email_address"),
            ("first_name", "first_name"),
            ("HTTPHeader", "http_header"),
            ("email-address", "email_address"),
        ],
    )
    def test_underscore(self, name, expected):
        """Test CamelCase, mixedCase and dashed names."""
        assert underscore(name) == expected
