"""Merge-field preview: render email copy against one lead record."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

# {{first_name}}, {FIRST_NAME}, [[first_name]]
MERGE_FIELD_PATTERN = re.compile(r"\{\{([A-Za-z_]+)\}\}|\{([A-Z_]+)\}|\[\[([A-Za-z_]+)\]\]")

FIELD_ALIASES: dict[str, list[str]] = {
    "firstname": ["first_name", "firstName", "first", "fname", "givenname"],
    "lastname": ["last_name", "lastName", "last", "lname", "surname", "familyname"],
    "company": ["company_name", "companyName", "organization", "org", "business"],
    "title": ["job_title", "jobTitle", "position", "role", "jobtitle"],
    "email": ["email_address", "emailAddress", "mail"],
    "industry": ["sector", "vertical"],
    "city": ["location", "town"],
    "state": ["region", "province"],
    "country": ["nation"],
    "phone": ["telephone", "phonenumber", "phone_number", "mobile"],
}


@dataclass
class MergeResult:
    merged: str
    missing_fields: list[str] = field(default_factory=list)


def normalize_field_name(name: str) -> str:
    return re.sub(r"[_\s-]", "", name.lower())


def _alias_group(normalized: str) -> set[str] | None:
    for standard, variations in FIELD_ALIASES.items():
        group = {standard} | {normalize_field_name(v) for v in variations}
        if normalized in group:
            return group
    return None


def find_lead_value(lead: dict[str, str], field_name: str) -> str | None:
    """Value for a merge field: exact normalized key first, then the alias table."""
    normalized = normalize_field_name(field_name)

    for key, value in lead.items():
        if normalize_field_name(key) == normalized and value:
            return str(value)

    group = _alias_group(normalized)
    if group:
        for key, value in lead.items():
            if normalize_field_name(key) in group and value:
                return str(value)
    return None


def display_name(field_name: str) -> str:
    """FIRST_NAME -> 'First Name'."""
    return " ".join(w.capitalize() for w in field_name.replace("_", " ").lower().split())


def merge_email_with_lead(text: str, lead: dict[str, str] | None) -> MergeResult:
    """Substitute merge fields; unknown fields render as ``[Display Name]`` and are reported."""
    result = MergeResult(merged=text or "")
    if not text:
        return result

    def replace(match: re.Match) -> str:
        name = match.group(1) or match.group(2) or match.group(3)
        value = find_lead_value(lead, name) if lead else None
        if value:
            return value
        result.missing_fields.append(name)
        return f"[{display_name(name)}]"

    result.merged = MERGE_FIELD_PATTERN.sub(replace, text)
    return result
