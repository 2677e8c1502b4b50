"""Tests for cleaned-lead and issues-report export."""

import csv

import pytest

from leadlint.export import (
    cleaned_rows,
    export_cleaned_leads,
    export_issues_report,
    issue_rows,
)
from leadlint.stages.emails import classify_emails
from leadlint.stages.leads import parse_lead_csv


def _read_csv(path):
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.reader(f))


def test_cleaned_rows_keep_generic_drop_bad(lead_set, classifications):
    rows = cleaned_rows(lead_set, classifications)
    assert [r[2] for r in rows] == ["ada@acme.io", "BOB@acme.io", "info@globex.com"]


def test_issue_rows(classifications):
    rows = issue_rows(classifications)
    assert [(r[0], r[1]) for r in rows] == [
        ("info@globex.com", "generic_email"),
        ("dan@mailinator.com", "disposable_email"),
        ("not-an-email", "invalid_email"),
        ("ada@acme.io", "duplicate"),
    ]


def test_export_cleaned_csv(tmp_path, lead_set, classifications):
    out = export_cleaned_leads(lead_set, classifications, str(tmp_path / "clean.csv"))
    rows = _read_csv(out)
    assert rows[0] == lead_set.headers
    assert len(rows) == 4


def test_export_issues_csv(tmp_path, classifications):
    out = export_issues_report(classifications, str(tmp_path / "issues.csv"))
    rows = _read_csv(out)
    assert rows[0] == ["email", "issue_type", "details"]
    assert len(rows) == 5


def test_export_excel(tmp_path, lead_set, classifications):
    from openpyxl import load_workbook

    out = export_cleaned_leads(lead_set, classifications, str(tmp_path / "clean.csv"), fmt="excel")
    assert out.endswith(".xlsx")

    ws = load_workbook(out).active
    assert ws.title == "Cleaned Leads"
    assert ws.max_row == 4
    assert ws.cell(row=1, column=1).value == "First Name"


def test_export_unknown_format(tmp_path, classifications):
    with pytest.raises(ValueError):
        export_issues_report(classifications, str(tmp_path / "x.json"), fmt="json")


def test_export_misaligned_classifications(lead_set, classifications):
    with pytest.raises(ValueError):
        cleaned_rows(lead_set, classifications[:2])


def test_cleaned_rows_keep_repeated_header_columns(tmp_path):
    lead_set = parse_lead_csv("Email,Phone,Phone\na@x.com,111,222\n")
    classifications = classify_emails(lead_set.emails())
    assert cleaned_rows(lead_set, classifications) == [["a@x.com", "111", "222"]]

    rows = _read_csv(export_cleaned_leads(lead_set, classifications, str(tmp_path / "clean.csv")))
    assert rows == [["Email", "Phone", "Phone"], ["a@x.com", "111", "222"]]
