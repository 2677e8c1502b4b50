"""Stage 3: Rule-weighted ICP match scoring of eligible leads."""

from __future__ import annotations

import re
from pathlib import Path

import yaml

from leadlint.config import ICPWeights
from leadlint.models import (
    CompetitorFlag,
    ICPCriteria,
    ICPMatchReason,
    ICPMatchSummary,
    LeadAnalysis,
    LeadClassification,
    LeadRecord,
    LeadSet,
    MatchLevel,
)
from leadlint.stages.emails import eligible_indices, extract_domain

STRONG_THRESHOLD = 80
PARTIAL_THRESHOLD = 60
WEAK_THRESHOLD = 40

# Worst first, so reviewers see problems before confirmations.
REVIEW_ORDER = {
    MatchLevel.MISMATCH: 0,
    MatchLevel.WEAK: 1,
    MatchLevel.PARTIAL: 2,
    MatchLevel.STRONG: 3,
}


def match_level_for(score: int) -> MatchLevel:
    if score >= STRONG_THRESHOLD:
        return MatchLevel.STRONG
    if score >= PARTIAL_THRESHOLD:
        return MatchLevel.PARTIAL
    if score >= WEAK_THRESHOLD:
        return MatchLevel.WEAK
    return MatchLevel.MISMATCH


def _as_list(values) -> list[str] | None:
    """A YAML scalar becomes a one-item list; mappings are not criteria."""
    if values is None:
        return []
    if isinstance(values, (str, int, float)):
        return [str(values)]
    if isinstance(values, list):
        return [str(v) for v in values if v is not None and not isinstance(v, (dict, list))]
    return None


def load_icp_criteria(path: str | Path, required: bool = False) -> ICPCriteria:
    """Load ICP criteria from a YAML file.

    A missing file yields empty criteria unless ``required`` is set, in
    which case FileNotFoundError propagates. Raises ValueError when the
    file does not hold a mapping.
    """
    from dacite import from_dict

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        if required:
            raise
        return ICPCriteria()

    if not isinstance(data, dict):
        raise ValueError(f"ICP criteria in {path} must be a mapping of criterion -> list")

    # Allow the criteria to live under an 'icp' key.
    if "icp" in data and isinstance(data["icp"], dict):
        data = data["icp"]

    cleaned = {}
    for key, values in data.items():
        as_list = _as_list(values)
        if as_list is not None:
            cleaned[key] = as_list
    return from_dict(data_class=ICPCriteria, data=cleaned)


def _contains_any(value: str, needles: list[str]) -> str | None:
    value = value.lower()
    for needle in needles:
        n = needle.strip().lower()
        if n and n in value:
            return needle
    return None


def normalize_company_size(size: str | None) -> str:
    """Bucket a free-form company size into micro/small/medium/large/enterprise."""
    if not size:
        return "unknown"

    num_match = re.search(r"(\d[\d,]*)", size)
    if num_match:
        num = int(num_match.group(1).replace(",", ""))
        if num <= 10:
            return "micro"
        if num <= 50:
            return "small"
        if num <= 200:
            return "medium"
        if num <= 1000:
            return "large"
        return "enterprise"

    normalized = re.sub(r"[^a-z0-9]", "", size.lower())
    if "micro" in normalized or "startup" in normalized:
        return "micro"
    if "small" in normalized or "smb" in normalized:
        return "small"
    if "mid" in normalized or "medium" in normalized:
        return "medium"
    if "large" in normalized:
        return "large"
    if "enterprise" in normalized or "fortune" in normalized:
        return "enterprise"
    return "unknown"


def _parse_size_range(criterion: str) -> tuple[int, int | None] | None:
    """'50-200' -> (50, 200); '1000+' -> (1000, None); otherwise None."""
    text = criterion.replace(",", "")
    m = re.fullmatch(r"\s*(\d+)\s*(?:-|to|–)\s*(\d+)\s*(?:employees)?\s*", text)
    if m:
        return int(m.group(1)), int(m.group(2))
    m = re.fullmatch(r"\s*(\d+)\s*\+\s*(?:employees)?\s*", text)
    if m:
        return int(m.group(1)), None
    return None


def _size_matches(lead_size: str, criteria: list[str]) -> bool:
    lead_num = None
    m = re.search(r"(\d[\d,]*)", lead_size)
    if m:
        lead_num = int(m.group(1).replace(",", ""))
    lead_bucket = normalize_company_size(lead_size)

    for criterion in criteria:
        size_range = _parse_size_range(criterion)
        if size_range is not None and lead_num is not None:
            low, high = size_range
            if lead_num >= low and (high is None or lead_num <= high):
                return True
            continue
        bucket = normalize_company_size(criterion)
        if bucket != "unknown" and bucket == lead_bucket:
            return True
    return False


def _title_reason(title: str, icp: ICPCriteria, weight: int) -> ICPMatchReason:
    wanted = icp.titles + icp.title_keywords
    if not wanted:
        return ICPMatchReason("No ICP titles defined to compare against", False, weight)
    if not title:
        return ICPMatchReason("Title missing", False, weight)
    hit = _contains_any(title, wanted)
    if hit:
        return ICPMatchReason(f"Title matches ICP: {title}", True, weight)
    return ICPMatchReason(f"Title doesn't match ICP: {title}", False, weight)


def _industry_reason(industry: str, icp: ICPCriteria, weight: int) -> ICPMatchReason:
    if not icp.industries:
        return ICPMatchReason("No ICP industries defined to compare against", False, weight)
    if not industry:
        return ICPMatchReason("Industry missing", False, weight)
    lowered = industry.lower()
    for target in icp.industries:
        t = target.strip().lower()
        if t and (t in lowered or lowered in t):
            return ICPMatchReason(f"Industry matches ICP: {industry}", True, weight)
    return ICPMatchReason(f"Industry doesn't match ICP: {industry}", False, weight)


def _size_reason(size: str, icp: ICPCriteria, weight: int) -> ICPMatchReason:
    if not icp.company_sizes:
        return ICPMatchReason("No ICP company sizes defined to compare against", False, weight)
    if not size:
        return ICPMatchReason("Company size missing", False, weight)
    if _size_matches(size, icp.company_sizes):
        return ICPMatchReason(f"Company size in range: {size}", True, weight)
    return ICPMatchReason(f"Company size outside ICP range: {size}", False, weight)


def _geography_reason(location: str, icp: ICPCriteria, weight: int) -> ICPMatchReason:
    if not icp.locations:
        return ICPMatchReason("No ICP geography defined to compare against", False, weight)
    if not location:
        return ICPMatchReason("Location missing", False, weight)
    if _contains_any(location, icp.locations):
        return ICPMatchReason(f"Location matches ICP: {location}", True, weight)
    return ICPMatchReason(f"Location outside ICP geography: {location}", False, weight)


def _exclusion_reason(
    email: str, title: str, company: str, icp: ICPCriteria, weight: int,
) -> ICPMatchReason:
    if not (icp.exclude_domains or icp.exclude_title_keywords or icp.exclude_companies):
        return ICPMatchReason("No ICP exclusions defined to compare against", False, weight)

    domain = extract_domain(email)
    if domain and domain in {d.strip().lower() for d in icp.exclude_domains}:
        return ICPMatchReason(f"Domain is excluded: {domain}", False, weight)
    keyword = _contains_any(title, icp.exclude_title_keywords) if title else None
    if keyword:
        return ICPMatchReason(f"Title contains excluded keyword: {keyword}", False, weight)
    excluded_company = _contains_any(company, icp.exclude_companies) if company else None
    if excluded_company:
        return ICPMatchReason(f"Company is excluded: {company}", False, weight)
    return ICPMatchReason("No exclusion hits", True, weight)


def _required_fields_reason(
    lead_set: LeadSet, row: LeadRecord, icp: ICPCriteria, weight: int,
) -> ICPMatchReason:
    missing = [
        f for f in icp.required_fields
        if not lead_set.value(row, f.strip().lower().replace(" ", "_"))
    ]
    if missing:
        return ICPMatchReason(f"Missing required fields: {', '.join(missing)}", False, weight)
    return ICPMatchReason("All required fields present", True, weight)


def score_lead(
    lead_set: LeadSet,
    row: LeadRecord,
    icp: ICPCriteria,
    weights: ICPWeights | None = None,
) -> LeadAnalysis:
    """Evaluate every weighted factor for one lead; one reason per factor.

    The required-fields factor only takes part when the criteria name
    required fields.
    """
    weights = weights or ICPWeights()
    value = lead_set.value

    email = value(row, "email")
    title = value(row, "title")
    company = value(row, "company")

    reasons = [
        _title_reason(title, icp, weights.title),
        _industry_reason(value(row, "industry"), icp, weights.industry),
        _size_reason(value(row, "company_size"), icp, weights.company_size),
        _geography_reason(value(row, "location"), icp, weights.geography),
        _exclusion_reason(email, title, company, icp, weights.exclusions),
    ]
    if icp.required_fields:
        reasons.append(_required_fields_reason(lead_set, row, icp, weights.required_fields))

    total_weight = sum(r.weight for r in reasons)
    positive_weight = sum(r.weight for r in reasons if r.positive)
    score = round(positive_weight / total_weight * 100) if total_weight > 0 else 0

    return LeadAnalysis(
        email=email,
        first_name=value(row, "first_name"),
        last_name=value(row, "last_name"),
        company=company,
        title=title,
        industry=value(row, "industry"),
        match_score=max(0, min(100, score)),
        reasons=reasons,
        low_confidence=icp.is_empty(),
    )


def score_leads(
    lead_set: LeadSet,
    classifications: list[LeadClassification],
    icp: ICPCriteria | None,
    weights: ICPWeights | None = None,
) -> list[LeadAnalysis]:
    """Score the eligible (valid, non-duplicate) leads in input order.

    Rows removed for hard quality issues are not scored; callers computing
    fleet-level percentages must count them as mismatches by omission.
    """
    icp = icp or ICPCriteria()
    return [
        score_lead(lead_set, lead_set.rows[i], icp, weights)
        for i in eligible_indices(classifications)
    ]


def sort_for_review(analyses: list[LeadAnalysis]) -> list[LeadAnalysis]:
    """Mismatch, weak, partial, strong; insertion order within a level."""
    return sorted(analyses, key=lambda a: REVIEW_ORDER[a.match_level])


def filter_by_level(analyses: list[LeadAnalysis], level: MatchLevel | str | None) -> list[LeadAnalysis]:
    if level is None or level == "all":
        return list(analyses)
    level = MatchLevel(level)
    return [a for a in analyses if a.match_level is level]


def summarize_matches(
    analyses: list[LeadAnalysis],
    excluded: int = 0,
) -> ICPMatchSummary:
    summary = ICPMatchSummary(total=len(analyses), excluded=excluded)
    for analysis in analyses:
        level = analysis.match_level
        setattr(summary, level.value, getattr(summary, level.value) + 1)
    if analyses:
        summary.average_score = round(sum(a.match_score for a in analyses) / len(analyses), 1)
        summary.low_confidence = any(a.low_confidence for a in analyses)
    return summary


_COMPANY_TLD = re.compile(r"\.(com|io|co|net|org)$")


def detect_competitors(
    lead_set: LeadSet,
    competitor_domains: list[str],
    classifications: list[LeadClassification] | None = None,
) -> list[CompetitorFlag]:
    """Flag leads at a competitor's email domain or with a competitor-like company name.

    A company name matches when it contains the competitor domain minus a
    common TLD (``acme.io`` -> ``acme``). When classifications are given,
    only eligible rows are checked.
    """
    domains = [d.strip().lower() for d in competitor_domains if d and d.strip()]
    if not domains:
        return []
    domain_set = set(domains)
    names = [n for n in (_COMPANY_TLD.sub("", d) for d in domains) if n]

    indices = (
        eligible_indices(classifications) if classifications is not None
        else range(len(lead_set))
    )
    flags = []
    for i in indices:
        row = lead_set.rows[i]
        email = lead_set.value(row, "email")
        company = lead_set.value(row, "company")
        domain = extract_domain(email)
        if domain in domain_set:
            flags.append(CompetitorFlag(i, email, company, f"Competitor domain: {domain}"))
        elif company and any(n in company.lower() for n in names):
            flags.append(CompetitorFlag(i, email, company, f"Possible competitor company: {company}"))
    return flags
