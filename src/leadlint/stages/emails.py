"""Stage 1: Email syntax, disposable/generic/duplicate classification."""

from __future__ import annotations

import re

from leadlint.lexicons import DEFAULT_LEXICONS, Lexicons
from leadlint.models import EmailCheck, LeadClassification

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
STRICT_EMAIL_PATTERN = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def is_valid_syntax(email: str | None) -> bool:
    """One '@', non-empty local part, dotted domain, no whitespace."""
    return bool(EMAIL_PATTERN.match((email or "").strip()))


def extract_domain(email: str | None) -> str:
    """Lower-cased part after '@', or '' when the address is not user@domain."""
    parts = normalize_email(email).split("@")
    return parts[1] if len(parts) == 2 else ""


def _local_part(email: str) -> str:
    return normalize_email(email).split("@", 1)[0]


def classify_emails(
    emails: list[str],
    lexicons: Lexicons = DEFAULT_LEXICONS,
) -> list[LeadClassification]:
    """Classify raw email values, preserving input order.

    Disposable and generic facets are only evaluated for syntactically
    valid addresses. Duplicate marks every occurrence of a normalized
    address after the first, valid or not.
    """
    seen: set[str] = set()
    results: list[LeadClassification] = []

    for raw in emails:
        email = (raw or "").strip()
        normalized = email.lower()
        result = LeadClassification(email=email)

        if normalized:
            if normalized in seen:
                result.is_duplicate = True
            else:
                seen.add(normalized)

        if is_valid_syntax(email):
            result.is_valid = True
            result.is_disposable = extract_domain(email) in lexicons.disposable_domains
            result.is_generic = _local_part(email) in lexicons.generic_prefixes

        results.append(result)

    return results


def validate_single_email(email: str | None, lexicons: Lexicons = DEFAULT_LEXICONS) -> EmailCheck:
    """Validate one address and collect soft warnings about it."""
    result = EmailCheck(email=(email or "").strip())

    if not result.email:
        result.error = "Email is empty"
        return result

    if not is_valid_syntax(result.email):
        result.error = "Invalid email format"
        return result

    result.is_valid = True
    if not STRICT_EMAIL_PATTERN.match(result.email):
        result.warnings.append("Email contains unusual characters")

    local_part = _local_part(result.email)
    result.domain = extract_domain(result.email)

    if result.domain in lexicons.disposable_domains:
        result.is_disposable = True
        result.warnings.append("Disposable email domain")

    if local_part in lexicons.generic_prefixes:
        result.is_generic = True
        result.warnings.append("Generic/role-based email address")

    if result.domain in lexicons.free_providers:
        result.is_free_provider = True
        result.warnings.append("Free email provider (possibly personal email)")

    if local_part.isdigit():
        result.warnings.append("Email local part is all numbers")

    if len(local_part) < 2:
        result.warnings.append("Very short email local part")

    if any(marker in local_part for marker in ("test", "fake", "demo")):
        result.warnings.append("Possibly test/fake email")

    return result


def eligible_indices(classifications: list[LeadClassification]) -> list[int]:
    """Rows that may be ICP-scored: valid and not a duplicate."""
    return [i for i, c in enumerate(classifications) if c.is_valid and not c.is_duplicate]


def clean_indices(classifications: list[LeadClassification]) -> list[int]:
    """Rows kept in a cleaned export: valid, non-disposable, non-duplicate."""
    return [i for i, c in enumerate(classifications) if c.is_clean]
