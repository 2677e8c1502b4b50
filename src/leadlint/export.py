"""CSV and Excel export for cleaned lead lists and data-quality issue reports."""

from __future__ import annotations

import csv
from pathlib import Path

from leadlint.models import LeadClassification, LeadSet
from leadlint.stages.emails import clean_indices

ISSUE_COLUMNS = ["email", "issue_type", "details"]

ISSUE_DETAILS = {
    "invalid_email": "Invalid email format",
    "disposable_email": "Disposable email domain",
    "generic_email": "Generic/role-based email address (kept, flagged)",
    "duplicate": "Duplicate of an earlier row",
}


def _check_aligned(lead_set: LeadSet, classifications: list[LeadClassification]) -> None:
    if len(classifications) != len(lead_set):
        raise ValueError(
            f"Classifications ({len(classifications)}) do not line up with rows ({len(lead_set)})"
        )


def cleaned_rows(lead_set: LeadSet, classifications: list[LeadClassification]) -> list[list[str]]:
    """Original columns for every valid, non-disposable, non-duplicate row, in input order."""
    _check_aligned(lead_set, classifications)
    return [
        [lead_set.rows[i].get(k, "") for k in lead_set.keys]
        for i in clean_indices(classifications)
    ]


def issue_rows(classifications: list[LeadClassification]) -> list[list[str]]:
    """One row per (email, issue); a record may appear under several issue types."""
    rows = []
    for c in classifications:
        if not c.is_valid:
            rows.append([c.email, "invalid_email", ISSUE_DETAILS["invalid_email"]])
        if c.is_disposable:
            rows.append([c.email, "disposable_email", ISSUE_DETAILS["disposable_email"]])
        if c.is_generic:
            rows.append([c.email, "generic_email", ISSUE_DETAILS["generic_email"]])
        if c.is_duplicate:
            rows.append([c.email, "duplicate", ISSUE_DETAILS["duplicate"]])
    return rows


def _write(rows: list[list[str]], columns: list[str], output_path: str, fmt: str, sheet: str) -> str:
    path = Path(output_path)

    if fmt == "excel":
        if not path.suffix == ".xlsx":
            path = path.with_suffix(".xlsx")
        return _export_excel(rows, columns, str(path), sheet)
    if fmt != "csv":
        raise ValueError(f"Unknown export format: {fmt!r}. Use 'csv' or 'excel'.")

    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(columns)
        writer.writerows(rows)

    return str(path)


def export_cleaned_leads(
    lead_set: LeadSet,
    classifications: list[LeadClassification],
    output_path: str = "cleaned_leads.csv",
    fmt: str = "csv",
) -> str:
    """Export the cleaned lead list. Generic-but-clean leads are kept."""
    return _write(cleaned_rows(lead_set, classifications), lead_set.headers, output_path, fmt, "Cleaned Leads")


def export_issues_report(
    classifications: list[LeadClassification],
    output_path: str = "issues_report.csv",
    fmt: str = "csv",
) -> str:
    """Export every data-quality issue as email, issue_type, details."""
    return _write(issue_rows(classifications), ISSUE_COLUMNS, output_path, fmt, "Issues")


def _export_excel(rows: list[list[str]], columns: list[str], output_path: str, sheet: str) -> str:
    """Export to Excel using openpyxl."""
    from openpyxl import Workbook

    wb = Workbook()
    ws = wb.active
    ws.title = sheet

    # Header row
    for col_idx, col_name in enumerate(columns, 1):
        ws.cell(row=1, column=col_idx, value=col_name)

    for row_idx, row in enumerate(rows, 2):
        for col_idx, value in enumerate(row, 1):
            ws.cell(row=row_idx, column=col_idx, value=value)

    wb.save(output_path)
    return output_path
