"""Dataclasses for lead sets, analyses, suggestions, and validation results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


# Lead records are plain ordered dicts of column name -> raw string value.
LeadRecord = dict[str, str]


class MatchLevel(str, Enum):
    STRONG = "strong"
    PARTIAL = "partial"
    WEAK = "weak"
    MISMATCH = "mismatch"


class SuggestionState(str, Enum):
    PENDING = "pending"
    APPLIED = "applied"
    DISMISSED = "dismissed"


class ValidationStatus(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    PASS = "pass"
    FAIL = "fail"
    WARNING = "warning"


class ValidationCategory(str, Enum):
    CLIENT_CAMPAIGN = "client_campaign"
    MAILBOX_HEALTH = "mailbox_health"
    COPY_LEADS = "copy_leads"


@dataclass
class LeadSet:
    headers: list[str]
    rows: list[LeadRecord] = field(default_factory=list)
    columns: dict[str, str] = field(default_factory=dict)  # semantic -> row key
    # Row keys parallel to headers; differ only where a header name repeats.
    keys: list[str] = field(default_factory=list)

    def __post_init__(self):
        if not self.keys:
            self.keys = list(self.headers)

    def value(self, row: LeadRecord, semantic: str) -> str:
        """Stripped value of a semantic field, or "" when unmapped/missing."""
        key = self.columns.get(semantic)
        if key is None:
            return ""
        return (row.get(key) or "").strip()

    def emails(self) -> list[str]:
        return [self.value(row, "email") for row in self.rows]

    def __len__(self) -> int:
        return len(self.rows)


@dataclass
class LeadClassification:
    email: str
    is_valid: bool = False
    is_disposable: bool = False
    is_generic: bool = False
    is_duplicate: bool = False

    @property
    def is_clean(self) -> bool:
        return self.is_valid and not self.is_disposable and not self.is_duplicate


@dataclass
class EmailCheck:
    email: str
    is_valid: bool = False
    error: str | None = None
    domain: str | None = None
    is_disposable: bool = False
    is_generic: bool = False
    is_free_provider: bool = False
    warnings: list[str] = field(default_factory=list)


@dataclass
class FieldCoverage:
    field: str
    count: int = 0
    percentage: int = 0


@dataclass
class DistributionItem:
    value: str
    count: int = 0
    percentage: int = 0


@dataclass
class LeadSummary:
    total_leads: int = 0
    valid_leads: int = 0
    invalid_leads: int = 0
    clean_leads: int = 0
    duplicates_found: int = 0
    disposable_found: int = 0
    generic_found: int = 0


@dataclass
class LeadDistributions:
    job_titles: list[DistributionItem] = field(default_factory=list)
    industries: list[DistributionItem] = field(default_factory=list)
    company_sizes: list[DistributionItem] = field(default_factory=list)
    email_domains: list[DistributionItem] = field(default_factory=list)


@dataclass
class DataQualityIssues:
    invalid_emails: list[str] = field(default_factory=list)
    disposable_emails: list[str] = field(default_factory=list)
    generic_emails: list[str] = field(default_factory=list)
    duplicate_emails: list[str] = field(default_factory=list)


@dataclass
class LeadDuplicate:
    """A lead whose first name, last name and company repeat an earlier row."""
    row_index: int
    email: str
    duplicate_of: str


@dataclass
class ProcessedLeadInsights:
    summary: LeadSummary = field(default_factory=LeadSummary)
    field_coverage: list[FieldCoverage] = field(default_factory=list)
    distributions: LeadDistributions = field(default_factory=LeadDistributions)
    data_quality_score: int = 0
    issues: DataQualityIssues = field(default_factory=DataQualityIssues)
    sample_data: list[dict] = field(default_factory=list)
    # Flagged only; name+company repeats never remove a lead.
    possible_duplicates: list[LeadDuplicate] = field(default_factory=list)


@dataclass
class ICPCriteria:
    titles: list[str] = field(default_factory=list)
    title_keywords: list[str] = field(default_factory=list)
    industries: list[str] = field(default_factory=list)
    company_sizes: list[str] = field(default_factory=list)
    locations: list[str] = field(default_factory=list)
    exclude_domains: list[str] = field(default_factory=list)
    exclude_title_keywords: list[str] = field(default_factory=list)
    exclude_companies: list[str] = field(default_factory=list)
    required_fields: list[str] = field(default_factory=list)  # semantic field names
    competitor_domains: list[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        """No scoring criteria; competitor domains only feed the competitor report."""
        return not any((
            self.titles, self.title_keywords, self.industries,
            self.company_sizes, self.locations, self.exclude_domains,
            self.exclude_title_keywords, self.exclude_companies,
            self.required_fields,
        ))


@dataclass
class CompetitorFlag:
    row_index: int
    email: str
    company: str
    reason: str


@dataclass
class ICPMatchReason:
    factor: str
    positive: bool
    weight: int = 0


@dataclass
class LeadAnalysis:
    email: str
    first_name: str = ""
    last_name: str = ""
    company: str = ""
    title: str = ""
    industry: str = ""
    match_score: int = 0
    reasons: list[ICPMatchReason] = field(default_factory=list)
    low_confidence: bool = False

    @property
    def match_level(self) -> MatchLevel:
        from leadlint.stages.icp import match_level_for

        return match_level_for(self.match_score)


@dataclass
class ICPMatchSummary:
    strong: int = 0
    partial: int = 0
    weak: int = 0
    mismatch: int = 0
    total: int = 0
    average_score: float = 0.0
    excluded: int = 0
    low_confidence: bool = False


@dataclass
class SpamWordMatch:
    word: str
    count: int = 0
    locations: list[str] = field(default_factory=list)  # 'subject' | 'body'


@dataclass
class SpamAnalysis:
    score: int = 100
    spam_words_found: list[SpamWordMatch] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass
class SubjectLineAnalysis:
    score: int = 100
    length: int = 0
    length_in_range: bool = False
    has_personalization: bool = False
    has_power_words: bool = False
    power_words_found: list[str] = field(default_factory=list)
    has_emoji: bool = False
    has_all_caps: bool = False
    all_caps_words: list[str] = field(default_factory=list)
    issues: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)


@dataclass
class EmailAnalysis:
    spam: SpamAnalysis
    subject: SubjectLineAnalysis | None = None  # None for threaded follow-up steps
    overall_score: int = 0
    step: int = 1


@dataclass
class SpintaxInfo:
    has_spintax: bool = False
    groups: list[list[str]] = field(default_factory=list)
    variants: list[str] = field(default_factory=list)
    variant_count: int = 1


@dataclass
class SuggestionLocation:
    email_index: int
    field: str  # 'subject' | 'body'
    campaign_id: str | None = None


@dataclass
class InlineSuggestionItem:
    id: str
    type: str  # subject | body | personalization | tone | length | spam
    severity: str  # error | warning | suggestion
    message: str
    original: str
    suggested: str
    location: SuggestionLocation
    state: SuggestionState = SuggestionState.PENDING

    @property
    def applied(self) -> bool:
        return self.state is SuggestionState.APPLIED

    @property
    def dismissed(self) -> bool:
        return self.state is SuggestionState.DISMISSED

    @property
    def is_pending(self) -> bool:
        return self.state is SuggestionState.PENDING


@dataclass
class ApplyResult:
    text: str
    changed: bool
    item: InlineSuggestionItem


@dataclass
class DiffSegment:
    kind: str  # 'same' | 'removed' | 'added'
    text: str


@dataclass
class ValidationResult:
    status: ValidationStatus
    message: str
    details: list[str] = field(default_factory=list)
    suggestions: list[InlineSuggestionItem] = field(default_factory=list)


@dataclass
class ValidationCacheEntry:
    result: ValidationResult
    timestamp: float
    fingerprint: str


@dataclass
class CampaignSequence:
    step: int
    subject: str = ""
    body: str = ""
    wait_days: int | None = None
    thread_reply: bool = False


@dataclass
class CampaignDetails:
    campaign_id: str
    campaign_name: str = ""
    platform: str = ""
    status: str | None = None
    sequences: list[CampaignSequence] = field(default_factory=list)


@dataclass
class MailboxAccount:
    id: str
    email: str
    name: str = ""
    warmup_score: int | None = None
    warmup_emails_sent: int = 0
    warmup_bounces_caused_count: int = 0
    warmup_replies_received: int = 0
    warmup_disabled_for_bouncing_count: int = 0
