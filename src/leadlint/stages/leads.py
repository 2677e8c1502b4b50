"""Stage 0: CSV lead-list parsing and semantic column resolution."""

from __future__ import annotations

import re
from pathlib import Path

from leadlint.models import LeadRecord, LeadSet


class LeadCSVError(ValueError):
    """Raised when a lead list cannot be parsed; nothing is classified."""


# Exact aliases are compared after normalization (lower-case, alphanumerics only).
COLUMN_ALIASES: dict[str, list[str]] = {
    "email": ["email", "e-mail", "email_address", "emailaddress", "work_email", "workemail", "business_email"],
    "first_name": ["first_name", "firstname", "first", "fname", "given_name", "givenname"],
    "last_name": ["last_name", "lastname", "last", "lname", "surname", "family_name", "familyname"],
    "company": ["company", "company_name", "companyname", "organization", "org", "employer", "business"],
    "title": ["title", "job_title", "jobtitle", "position", "role", "job_role", "designation"],
    "industry": ["industry", "sector", "vertical", "business_type"],
    "company_size": ["company_size", "companysize", "size", "employees", "employee_count", "num_employees", "headcount"],
    "linkedin_url": ["linkedin", "linkedin_url", "linkedinurl", "linkedin_profile", "li_url"],
    "phone": ["phone", "phone_number", "phonenumber", "mobile", "cell", "telephone", "work_phone"],
    "website": ["website", "url", "company_website", "domain", "web"],
    "location": ["location", "city", "country", "region", "address", "state", "geo"],
    "source": ["source", "lead_source", "origin", "campaign", "list_name"],
}

# Substring keywords, tried only after every field had its exact pass.
# Order matters: more specific fields claim their columns first.
COLUMN_KEYWORDS: dict[str, list[str]] = {
    "company_size": ["companysize", "employee", "headcount", "size"],
    "linkedin_url": ["linkedin"],
    "email": ["email", "mail"],
    "first_name": ["firstname", "givenname", "fname"],
    "last_name": ["lastname", "surname", "familyname", "lname"],
    "title": ["jobtitle", "title", "position", "jobrole"],
    "industry": ["industry", "sector", "vertical"],
    "company": ["company", "organization", "organisation", "employer"],
    "location": ["location", "country", "city", "region", "state", "geo"],
    "phone": ["phone", "mobile", "telephone"],
    "website": ["website", "domain", "url"],
    "source": ["source", "origin", "listname"],
}

SEMANTIC_FIELDS = list(COLUMN_ALIASES)


def normalize_header(header: str) -> str:
    """Lower-case a header and drop everything but letters and digits."""
    return re.sub(r"[^a-z0-9]", "", header.lower())


def resolve_field(
    headers: list[str],
    semantic: str,
    exclude: set[int] | frozenset[int] = frozenset(),
    exact_only: bool = False,
) -> int | None:
    """Return the index of the column that holds ``semantic``, or None.

    Exact alias matches win over substring matches; within a pass the
    left-most header wins. Indices in ``exclude`` are never returned.
    """
    normalized = [normalize_header(h) for h in headers]

    aliases = {normalize_header(a) for a in COLUMN_ALIASES.get(semantic, [semantic])}
    for idx, name in enumerate(normalized):
        if idx not in exclude and name in aliases:
            return idx

    if exact_only:
        return None

    for keyword in COLUMN_KEYWORDS.get(semantic, [normalize_header(semantic)]):
        for idx, name in enumerate(normalized):
            if idx not in exclude and name and keyword in name:
                return idx

    return None


def resolve_columns(headers: list[str], keys: list[str] | None = None) -> dict[str, str]:
    """Map every semantic field to at most one column, each column used once.

    Values are taken from ``keys`` (parallel to ``headers``) when given,
    otherwise the header names themselves.
    """
    claimed: set[int] = set()
    mapping: dict[str, int] = {}

    for semantic in SEMANTIC_FIELDS:
        idx = resolve_field(headers, semantic, exclude=claimed, exact_only=True)
        if idx is not None:
            mapping[semantic] = idx
            claimed.add(idx)

    for semantic in COLUMN_KEYWORDS:
        if semantic in mapping:
            continue
        idx = resolve_field(headers, semantic, exclude=claimed)
        if idx is not None:
            mapping[semantic] = idx
            claimed.add(idx)

    names = keys or headers
    return {semantic: names[idx] for semantic, idx in mapping.items()}


def unique_keys(headers: list[str]) -> list[str]:
    """Row keys parallel to ``headers``; repeated names get a numeric suffix."""
    keys: list[str] = []
    taken: set[str] = set()
    for header in headers:
        key, n = header, 1
        while key in taken:
            n += 1
            key = f"{header}_{n}"
        taken.add(key)
        keys.append(key)
    return keys


def _split_row(line: str) -> list[str]:
    """Naive comma split; surrounding whitespace and quotes are stripped."""
    return [value.strip().strip("'\"").strip() for value in line.split(",")]


def parse_lead_csv(text: str) -> LeadSet:
    """Parse CSV text into a LeadSet.

    Raises LeadCSVError for fewer than two non-blank lines, any row whose
    column count differs from the header, or a missing email column.
    """
    text = text.lstrip("\ufeff")
    lines = [line for line in re.split(r"\r?\n", text) if line.strip()]

    if len(lines) < 2:
        raise LeadCSVError("CSV file appears to be empty or invalid: expected a header and at least one row")

    headers = _split_row(lines[0])
    keys = unique_keys(headers)
    columns = resolve_columns(headers, keys)
    if "email" not in columns:
        raise LeadCSVError(
            "No email column detected in CSV. Expected headers like: email, e-mail, email_address"
        )

    rows: list[LeadRecord] = []
    for line_no, line in enumerate(lines[1:], start=2):
        values = _split_row(line)
        if len(values) != len(headers):
            raise LeadCSVError(
                f"Row {line_no} has {len(values)} columns, expected {len(headers)}"
            )
        rows.append(dict(zip(keys, values)))

    return LeadSet(headers=headers, rows=rows, columns=columns, keys=keys)


def read_lead_csv(path: str | Path) -> LeadSet:
    """Read a CSV file from disk and parse it."""
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Lead list not found: {p}")
    return parse_lead_csv(p.read_text(encoding="utf-8-sig"))


def missing_recommended_fields(lead_set: LeadSet) -> list[str]:
    """Recommended fields (email, names, company) that have no column."""
    recommended = ["email", "first_name", "last_name", "company"]
    return [f for f in recommended if f not in lead_set.columns]
