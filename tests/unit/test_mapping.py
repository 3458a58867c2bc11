"""Tests for mapping/loader.py."""

from __future__ import annotations

from pathlib import Path

import pytest

from rolemap.mapping.loader import (
    MappingError,
    load_permission_table,
    normalize_category,
    parse_permission_table,
)


class TestNormalizeCategory:
    def test_singular_tokens(self):
        assert normalize_category("Key") == "keys"
        assert normalize_category("Secret") == "secrets"
        assert normalize_category("Certificate") == "certificates"
        assert normalize_category("Storage") == "storage"

    def test_unknown_token_lowercased(self):
        assert normalize_category("Managed") == "managed"


class TestParsePermissionTable:
    def test_header_skipped(self, table):
        assert "access" not in table.categories

    def test_categories_normalized(self, table):
        assert table.categories["keys"]["get"] == ["Microsoft.KeyVault/vaults/keys/read"]
        assert table.categories["secrets"]["set"] == ["Microsoft.KeyVault/vaults/secrets/setSecret/action"]

    def test_multi_word_action_collapsed(self, table):
        assert "managecontacts" in table.categories["certificates"]

    def test_semicolon_separated_actions(self):
        table = parse_permission_table(
            "header,header\n"
            "Key Recover,Microsoft.KeyVault/vaults/keys/recover/action; Microsoft.KeyVault/vaults/deletedKeys/recover/action\n"
        )
        assert table.categories["keys"]["recover"] == [
            "Microsoft.KeyVault/vaults/keys/recover/action",
            "Microsoft.KeyVault/vaults/deletedKeys/recover/action",
        ]

    def test_malformed_lines_skipped(self):
        table = parse_permission_table(
            "header,header\n"
            "Key Get\n"
            "Secret,Microsoft.KeyVault/vaults/secrets/getSecret/action\n"
            "Secret List,\n"
            ",Microsoft.KeyVault/vaults/keys/read\n"
            "\n"
            "Secret Get,Microsoft.KeyVault/vaults/secrets/getSecret/action\n"
        )
        assert table.categories["secrets"] == {"get": ["Microsoft.KeyVault/vaults/secrets/getSecret/action"]}
        assert table.categories["keys"] == {}

    def test_known_actions_flattened_unique(self, table):
        assert len(table.known_actions) == 9
        assert table.known_actions[0] == "Microsoft.KeyVault/vaults/keys/read"
        assert table.known_actions.count("Microsoft.KeyVault/vaults/keys/read") == 1

    def test_is_known_case_insensitive(self, table):
        assert table.is_known("microsoft.keyvault/vaults/secrets/getsecret/action")
        assert not table.is_known("Microsoft.KeyVault/vaults/secrets/purge/action")

    def test_empty_text(self):
        table = parse_permission_table("")
        assert table.known_actions == ()


class TestLoadPermissionTable:
    def test_bundled_table(self):
        table = load_permission_table()
        assert set(table.categories) >= {"keys", "secrets", "certificates", "storage"}
        assert table.categories["secrets"]["get"] == ["Microsoft.KeyVault/vaults/secrets/getSecret/action"]
        assert "wrapkey" in table.categories["keys"]
        assert table.is_known("Microsoft.KeyVault/vaults/storageaccounts/sas/read")

    def test_from_file(self, tmp_path: Path, mapping_csv: str):
        path = tmp_path / "mapping.csv"
        path.write_text(mapping_csv, encoding="utf-8")
        table = load_permission_table(path)
        assert len(table.known_actions) == 9

    def test_missing_file_raises(self, tmp_path: Path):
        with pytest.raises(MappingError):
            load_permission_table(tmp_path / "nope.csv")
