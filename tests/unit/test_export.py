"""Tests for formatters/export.py."""

from __future__ import annotations

import csv
import io
import json

from rolemap.formatters.export import CSV_HEADERS, export_csv, export_json, export_powershell
from rolemap.models.grant import LegacyGrant


class TestExportCsv:
    def test_header_and_rows(self, full_match_analysis, mixed_analysis):
        lines = export_csv([full_match_analysis, mixed_analysis]).splitlines()
        assert lines[0] == ",".join(CSV_HEADERS)
        assert lines[1] == (
            '"Alice","user-1","User","Max Coverage","Key Vault Secrets User","100%","0","0"'
        )
        assert len(lines) == 3

    def test_selected_strategy(self, mixed_analysis):
        row = export_csv([mixed_analysis], "Balanced").splitlines()[1]
        assert '"Key Vault Crypto User","67%","1","0"' in row

    def test_quotes_escaped(self, full_match_analysis):
        grant = LegacyGrant(object_id="x", display_name='My "app"')
        analysis = full_match_analysis.model_copy(update={"grant": grant})
        row = export_csv([analysis]).splitlines()[1]
        assert row.startswith('"My ""app""","x","Unknown"')

    def test_embedded_newline_stays_in_one_record(self, full_match_analysis):
        grant = LegacyGrant(object_id="x", display_name="line one\nline two")
        analysis = full_match_analysis.model_copy(update={"grant": grant})
        rows = list(csv.reader(io.StringIO(export_csv([analysis]))))
        assert len(rows) == 2
        assert rows[1][0] == "line one\nline two"
        assert rows[1][1] == "x"


class TestExportJson:
    def test_structure(self, full_match_analysis, mixed_analysis):
        data = json.loads(export_json([full_match_analysis, mixed_analysis]))
        assert len(data) == 2
        assert data[0]["identity"] == {
            "objectId": "user-1",
            "name": "Alice",
            "type": "User",
            "applicationId": None,
        }
        assert data[0]["originalPermissions"] == {"secrets": ["get", "list"]}
        assert data[0]["recommendation"]["roleName"] == "Key Vault Secrets User"
        assert data[0]["existingCoverage"]["isFullyCovered"] is True
        assert "existingCoverage" not in data[1]

    def test_no_match(self, mixed_analysis):
        [entry] = json.loads(export_json([mixed_analysis], "Minimize Excess"))
        assert entry["recommendation"]["roleName"] == "No Match"
        assert entry["recommendation"]["roleNames"] == []


class TestExportPowershell:
    def test_assignment_commands(self, full_match_analysis):
        script = export_powershell([full_match_analysis], "kv-test", "sub-1")
        assert "$vaultName = 'kv-test'" in script
        assert "$subscriptionId = 'sub-1'" in script
        assert "New-AzRoleAssignment `" in script
        assert "  -ObjectId 'user-1' `" in script
        assert "  -RoleDefinitionName 'Key Vault Secrets User' `" in script
        assert "# Strategy: Max Coverage | Confidence: 100%" in script

    def test_no_match_comment(self, mixed_analysis):
        script = export_powershell([mixed_analysis], "kv-test", strategy="Minimize Excess")
        assert "# No matching role found for this identity" in script
        assert "New-AzRoleAssignment" not in script

    def test_warnings(self, mixed_analysis):
        script = export_powershell([mixed_analysis], "kv-test", strategy="Balanced")
        assert "# WARNING: 1 permissions will NOT be covered" in script
        script = export_powershell([mixed_analysis], "kv-test")
        assert "# NOTE: 1 additional permissions will be granted" in script

    def test_multiline_display_name_stays_commented(self, full_match_analysis):
        grant = LegacyGrant(object_id="o1", display_name="Eve\nRemove-Item -Recurse C:\\\r\nWrite-Host hi")
        analysis = full_match_analysis.model_copy(update={"grant": grant})
        script = export_powershell([analysis], "kv-test")
        lines = script.splitlines()
        assert not any(line.startswith(("Remove-Item", "Write-Host hi")) for line in lines)
        assert "# Eve Remove-Item -Recurse C:\\ Write-Host hi (o1)" in lines

    def test_role_name_cannot_break_out_of_argument(self, full_match_analysis):
        hostile = 'x" ; Write-Host "pwned'
        rec = full_match_analysis.recommendations[0].model_copy(
            update={"role_names": [hostile, "O'Brien Role"], "role_name": hostile}
        )
        analysis = full_match_analysis.model_copy(update={"recommendations": [rec]})
        script = export_powershell([analysis], "kv-test")
        assert "  -RoleDefinitionName 'x\" ; Write-Host \"pwned' `" in script
        assert "  -RoleDefinitionName 'O''Brien Role' `" in script

    def test_vault_name_and_object_id_quoted(self, full_match_analysis):
        grant = LegacyGrant(object_id="a'b$(whoami)", display_name="Alice")
        analysis = full_match_analysis.model_copy(update={"grant": grant})
        script = export_powershell([analysis], "kv'$env:PATH", "sub\n1")
        assert "$vaultName = 'kv''$env:PATH'" in script
        assert "$subscriptionId = 'sub\n1'" in script
        assert "# Subscription: sub 1" in script
        assert "  -ObjectId 'a''b$(whoami)' `" in script
