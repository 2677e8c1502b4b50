"""Stage 2: Field coverage, categorical distributions, and lead insights."""

from __future__ import annotations

import re

from leadlint.lexicons import DEFAULT_LEXICONS, Lexicons
from leadlint.models import (
    DataQualityIssues,
    DistributionItem,
    FieldCoverage,
    LeadClassification,
    LeadDistributions,
    LeadDuplicate,
    LeadSet,
    LeadSummary,
    ProcessedLeadInsights,
)
from leadlint.stages.emails import classify_emails, extract_domain

COVERAGE_FIELDS = [
    "email", "first_name", "last_name", "company",
    "title", "industry", "company_size", "linkedin_url",
]

SAMPLE_FIELDS = ["email", "first_name", "last_name", "company", "title", "industry"]

# Common title variations collapsed before counting.
TITLE_ABBREVIATIONS: list[tuple[str, str]] = [
    ("chief executive officer", "CEO"),
    ("chief financial officer", "CFO"),
    ("chief technology officer", "CTO"),
    ("chief marketing officer", "CMO"),
    ("chief operating officer", "COO"),
    ("senior vice president", "SVP"),
    ("executive vice president", "EVP"),
    ("vice president", "VP"),
]


def field_coverage(lead_set: LeadSet, fields: list[str] | None = None) -> list[FieldCoverage]:
    """Percentage of records with a non-empty value, per semantic field."""
    fields = fields or COVERAGE_FIELDS
    total = len(lead_set)
    coverage = []
    for name in fields:
        if name not in lead_set.columns:
            coverage.append(FieldCoverage(field=name))
            continue
        count = sum(1 for row in lead_set.rows if lead_set.value(row, name))
        percentage = round(count / total * 100) if total else 0
        coverage.append(FieldCoverage(field=name, count=count, percentage=percentage))
    return coverage


def normalize_title(title: str) -> str:
    """Collapse whitespace and abbreviate C-level / VP spellings."""
    title = re.sub(r"\s+", " ", title.strip())
    for long_form, short in TITLE_ABBREVIATIONS:
        title = re.sub(re.escape(long_form), short, title, flags=re.IGNORECASE)
    return title


def distribution(values: list[str], top_n: int = 10) -> list[DistributionItem]:
    """Count non-empty values, most common first.

    Ties keep the order in which values were first seen.
    """
    counts: dict[str, int] = {}
    for value in values:
        value = value.strip()
        if value:
            counts[value] = counts.get(value, 0) + 1

    total = sum(counts.values())
    ranked = sorted(counts.items(), key=lambda kv: -kv[1])
    return [
        DistributionItem(value=value, count=count, percentage=round(count / total * 100))
        for value, count in ranked[:top_n]
    ]


def lead_distributions(
    lead_set: LeadSet,
    classifications: list[LeadClassification],
    top_n: int = 10,
) -> LeadDistributions:
    rows = lead_set.rows
    domains = [
        extract_domain(c.email) for c in classifications if c.is_valid
    ]
    return LeadDistributions(
        job_titles=distribution([normalize_title(lead_set.value(r, "title")) for r in rows], top_n),
        industries=distribution([lead_set.value(r, "industry") for r in rows], top_n),
        company_sizes=distribution([lead_set.value(r, "company_size") for r in rows], top_n),
        email_domains=distribution(domains, top_n),
    )


def collect_issues(classifications: list[LeadClassification]) -> DataQualityIssues:
    issues = DataQualityIssues()
    for c in classifications:
        if not c.is_valid:
            issues.invalid_emails.append(c.email)
        if c.is_disposable:
            issues.disposable_emails.append(c.email)
        if c.is_generic:
            issues.generic_emails.append(c.email)
        if c.is_duplicate:
            issues.duplicate_emails.append(c.email)
    return issues


def name_company_duplicates(
    lead_set: LeadSet,
    classifications: list[LeadClassification],
) -> list[LeadDuplicate]:
    """Rows repeating an earlier first name + last name + company under another email.

    Rows already flagged as email duplicates, and rows missing any of the
    three fields, are skipped. Whitespace and case are ignored.
    """
    seen: dict[str, str] = {}
    found = []
    for i, (row, c) in enumerate(zip(lead_set.rows, classifications)):
        if c.is_duplicate:
            continue
        parts = [lead_set.value(row, f) for f in ("first_name", "last_name", "company")]
        if not all(parts):
            continue
        key = re.sub(r"\s+", "", "_".join(parts).lower())
        if key in seen:
            found.append(LeadDuplicate(row_index=i, email=c.email, duplicate_of=seen[key]))
        else:
            seen[key] = c.email
    return found


def data_quality_score(classifications: list[LeadClassification]) -> int:
    """Percentage of records that are valid, non-disposable and non-duplicate."""
    if not classifications:
        return 0
    clean = sum(1 for c in classifications if c.is_clean)
    return round(clean / len(classifications) * 100)


def build_insights(
    lead_set: LeadSet,
    classifications: list[LeadClassification] | None = None,
    top_n: int = 10,
    sample_size: int = 10,
    lexicons: Lexicons = DEFAULT_LEXICONS,
) -> ProcessedLeadInsights:
    """Aggregate classification, coverage and distributions for a lead set."""
    if classifications is None:
        classifications = classify_emails(lead_set.emails(), lexicons)

    summary = LeadSummary(
        total_leads=len(classifications),
        valid_leads=sum(1 for c in classifications if c.is_valid),
        invalid_leads=sum(1 for c in classifications if not c.is_valid),
        clean_leads=sum(1 for c in classifications if c.is_clean),
        duplicates_found=sum(1 for c in classifications if c.is_duplicate),
        disposable_found=sum(1 for c in classifications if c.is_disposable),
        generic_found=sum(1 for c in classifications if c.is_generic),
    )

    sample_data = [
        {name: lead_set.value(row, name) or None for name in SAMPLE_FIELDS}
        for row in lead_set.rows[:sample_size]
    ]

    return ProcessedLeadInsights(
        summary=summary,
        field_coverage=field_coverage(lead_set),
        distributions=lead_distributions(lead_set, classifications, top_n),
        data_quality_score=data_quality_score(classifications),
        issues=collect_issues(classifications),
        sample_data=sample_data,
        possible_duplicates=name_company_duplicates(lead_set, classifications),
    )


def cleaned_leads_stats(insights: ProcessedLeadInsights) -> dict[str, int]:
    """Counts for the cleaned-leads download; generic leads are flagged, not removed."""
    issues = insights.issues
    removed = insights.summary.total_leads - insights.summary.clean_leads
    return {
        "cleaned_count": insights.summary.clean_leads,
        "removed_count": removed,
        "invalid_count": len(issues.invalid_emails),
        "disposable_count": len(issues.disposable_emails),
        "duplicate_count": len(issues.duplicate_emails),
        "generic_count": len(issues.generic_emails),
    }
