"""Unit tests for tenant ID validation and search path composition."""

from unittest.mock import MagicMock

import pytest

from mercato.core.tenancy import identifiers
from mercato.core.tenancy.errors import MalformedTenantIdError
from mercato.core.tenancy.identifiers import (
    build_search_path_statement,
    schema_name_for,
    validate_schema_name,
    validate_tenant_id,
)


pytestmark = pytest.mark.unit

MALFORMED_IDS = [
    "",
    "abc;DROP SCHEMA public CASCADE",
    'abc", "public',
    "tenant'x",
    "a b",
    "a.b",
    "abc\n",
    "abc\x00",
    "ñandú",
    "../etc",
    "acme$",
]


class TestValidateTenantId:
    """Tests for the identifier allow-list."""

    @pytest.mark.parametrize("tenant_id", ["abc123", "xyz789", "Store-7", "a_b", "0"])
    def test_accepts_allowed_characters(self, tenant_id: str):
        assert validate_tenant_id(tenant_id) == tenant_id

    @pytest.mark.parametrize("tenant_id", MALFORMED_IDS)
    def test_rejects_outside_allow_list(self, tenant_id: str):
        with pytest.raises(MalformedTenantIdError):
            validate_tenant_id(tenant_id)

    @pytest.mark.parametrize("value", [None, 42, b"abc123", ["abc123"]])
    def test_rejects_non_strings(self, value: object):
        with pytest.raises(MalformedTenantIdError):
            validate_tenant_id(value)

    def test_rejection_is_logged_without_the_value(self, monkeypatch: pytest.MonkeyPatch):
        """The raw input may be an attack payload and must stay out of logs."""
        mock_logger = MagicMock()
        monkeypatch.setattr(identifiers, "logger", mock_logger)
        payload = "x'; DROP TABLE users; --"

        with pytest.raises(MalformedTenantIdError):
            validate_tenant_id(payload)

        mock_logger.warning.assert_called_once()
        args, kwargs = mock_logger.warning.call_args
        assert args == ("tenant_id_rejected",)
        assert kwargs["security"] is True
        assert kwargs["value_length"] == len(payload)
        assert payload not in repr(kwargs)

    def test_error_message_is_generic(self):
        with pytest.raises(MalformedTenantIdError) as exc_info:
            validate_tenant_id("evil;")

        assert "evil" not in exc_info.value.message
        assert exc_info.value.status_code == 400
        assert exc_info.value.details == {}


class TestSchemaNameFor:
    """Tests for schema name derivation."""

    def test_prefixes_and_lowercases(self):
        assert schema_name_for("abc123") == "tenant_abc123"
        assert schema_name_for("Store-7") == "tenant_store-7"

    def test_custom_prefix(self):
        assert schema_name_for("abc123", prefix="t_") == "t_abc123"

    def test_rejects_malformed_id(self):
        with pytest.raises(MalformedTenantIdError):
            schema_name_for("abc;def")

    def test_rejects_names_past_identifier_limit(self):
        # 7 prefix chars + 57 = 64 > 63
        with pytest.raises(MalformedTenantIdError):
            schema_name_for("a" * 57)

    def test_accepts_names_at_identifier_limit(self):
        assert len(schema_name_for("a" * 56)) == 63


class TestValidateSchemaName:
    def test_accepts_public(self):
        assert validate_schema_name("public") == "public"

    def test_rejects_quoted_name(self):
        with pytest.raises(MalformedTenantIdError):
            validate_schema_name('public"')


class TestBuildSearchPathStatement:
    """Tests for the only place identifiers are interpolated into SQL."""

    def test_quotes_each_schema_in_order(self):
        statement = build_search_path_statement("tenant_abc123", "public")

        assert str(statement) == 'SET LOCAL search_path TO "tenant_abc123", "public"'

    def test_single_schema(self):
        statement = build_search_path_statement("tenant_abc123")

        assert str(statement) == 'SET LOCAL search_path TO "tenant_abc123"'

    def test_requires_a_schema(self):
        with pytest.raises(ValueError):
            build_search_path_statement()

    @pytest.mark.parametrize("schema", MALFORMED_IDS)
    def test_revalidates_every_name(self, schema: str):
        with pytest.raises(MalformedTenantIdError):
            build_search_path_statement("tenant_abc123", schema)
