"""Validation orchestrator: per-category validators behind the fingerprint cache."""

from __future__ import annotations

import logging
from typing import Callable

from leadlint.ai.base import AIProvider
from leadlint.cache import ValidationCache, make_fingerprint
from leadlint.config import Config
from leadlint.lexicons import DEFAULT_LEXICONS, Lexicons
from leadlint.models import (
    CampaignDetails,
    ICPCriteria,
    LeadSet,
    MailboxAccount,
    ValidationCategory,
    ValidationResult,
    ValidationStatus,
)

logger = logging.getLogger(__name__)

Validator = Callable[..., ValidationResult]

CRITICAL_WARMUP_SCORE = 30
WARNING_WARMUP_SCORE = 50

FAILING_COPY_SCORE = 50
WARNING_COPY_SCORE = 70
FAILING_DATA_QUALITY = 50
WARNING_DATA_QUALITY = 80

# Uploaded lead samples are not captured by any fingerprint.
UNCACHED_CATEGORIES = frozenset({ValidationCategory.COPY_LEADS})


def campaign_fingerprint(client_id: str | None, campaigns: list[CampaignDetails]) -> str:
    return make_fingerprint(
        client_id=client_id,
        campaign_ids=sorted(c.campaign_id for c in campaigns),
        details_count=len(campaigns),
    )


def mailbox_fingerprint(client_id: str | None, mailboxes: list[MailboxAccount]) -> str:
    return make_fingerprint(
        client_id=client_id,
        mailbox_ids=sorted(m.id for m in mailboxes),
        count=len(mailboxes),
    )


def validate_campaign_config(campaigns: list[CampaignDetails]) -> ValidationResult:
    """Every selected campaign needs steps, a step-1 subject and non-empty bodies."""
    if not campaigns:
        return ValidationResult(ValidationStatus.FAIL, "No campaigns selected")

    errors = []
    steps = 0
    for campaign in campaigns:
        name = campaign.campaign_name or campaign.campaign_id
        if not campaign.sequences:
            errors.append(f"{name}: no email sequence configured")
            continue
        for seq in campaign.sequences:
            steps += 1
            if seq.step == 1 and not seq.subject.strip():
                errors.append(f"{name}: step 1 has no subject line")
            if not seq.body.strip():
                errors.append(f"{name}: step {seq.step} has an empty body")

    if errors:
        return ValidationResult(
            ValidationStatus.FAIL,
            f"{len(errors)} campaign configuration problem{'s' if len(errors) > 1 else ''}",
            details=errors,
        )
    return ValidationResult(
        ValidationStatus.PASS,
        f"{len(campaigns)} campaign(s) configured with {steps} email step(s)",
    )


def validate_mailbox_health(mailboxes: list[MailboxAccount]) -> ValidationResult:
    """Warmup score below 30 or bounce-disabled is critical; below 50 is a warning."""
    if not mailboxes:
        return ValidationResult(ValidationStatus.FAIL, "No mailboxes connected")

    critical = []
    warnings = []
    for mb in mailboxes:
        if mb.warmup_disabled_for_bouncing_count > 0:
            critical.append(f"{mb.email}: warmup disabled for bouncing")
        elif mb.warmup_score is None:
            warnings.append(f"{mb.email}: no warmup data")
        elif mb.warmup_score < CRITICAL_WARMUP_SCORE:
            critical.append(f"{mb.email}: warmup score {mb.warmup_score}")
        elif mb.warmup_score < WARNING_WARMUP_SCORE:
            warnings.append(f"{mb.email}: warmup score {mb.warmup_score}")

    details = critical + warnings
    if critical:
        return ValidationResult(
            ValidationStatus.FAIL,
            f"{len(critical)} of {len(mailboxes)} mailboxes in critical health",
            details=details,
        )
    if warnings:
        return ValidationResult(
            ValidationStatus.WARNING,
            f"{len(warnings)} of {len(mailboxes)} mailboxes need attention",
            details=details,
        )
    return ValidationResult(ValidationStatus.PASS, f"All {len(mailboxes)} mailboxes healthy")


class CopyLeadsValidator:
    """Local copy and lead-list checks, plus an optional AI fix list."""

    def __init__(
        self,
        config: Config | None = None,
        lexicons: Lexicons = DEFAULT_LEXICONS,
        provider: AIProvider | None = None,
        model: str = "",
    ):
        self.config = config or Config()
        self.lexicons = lexicons
        self.provider = provider
        self.model = model

    def __call__(
        self,
        campaigns: list[CampaignDetails],
        lead_sets: dict[str, LeadSet] | None = None,
        icp: ICPCriteria | None = None,
        client_name: str = "",
    ) -> ValidationResult:
        from leadlint.stages.copy import analyze_sequence, score_label
        from leadlint.stages.coverage import build_insights
        from leadlint.stages.emails import classify_emails, eligible_indices
        from leadlint.stages.icp import detect_competitors, score_leads, summarize_matches

        if not campaigns:
            return ValidationResult(ValidationStatus.FAIL, "No campaigns to review")

        lead_sets = lead_sets or {}
        status = ValidationStatus.PASS
        details: list[str] = []
        findings: list[str] = []
        samples: list[dict] = []
        lead_count = 0
        quality_scores = []

        def worsen(new: ValidationStatus) -> None:
            nonlocal status
            if new is ValidationStatus.FAIL or (new is ValidationStatus.WARNING and status is ValidationStatus.PASS):
                status = new

        for campaign in campaigns:
            name = campaign.campaign_name or campaign.campaign_id
            for analysis in analyze_sequence(campaign.sequences, self.config.copy, self.lexicons):
                line = (
                    f"{name} step {analysis.step}: copy score {analysis.overall_score} "
                    f"({score_label(analysis.overall_score)})"
                )
                findings.append(line)
                if analysis.overall_score < FAILING_COPY_SCORE:
                    worsen(ValidationStatus.FAIL)
                    details.append(line)
                elif analysis.overall_score < WARNING_COPY_SCORE:
                    worsen(ValidationStatus.WARNING)
                    details.append(line)
                details.extend(f"{name} step {analysis.step}: {w}" for w in analysis.spam.warnings)

            lead_set = lead_sets.get(campaign.campaign_id)
            if lead_set is None:
                continue
            classifications = classify_emails(lead_set.emails(), self.lexicons)
            insights = build_insights(
                lead_set, classifications,
                top_n=self.config.leads.top_n,
                sample_size=self.config.leads.sample_size,
                lexicons=self.lexicons,
            )
            lead_count += insights.summary.total_leads
            quality_scores.append(insights.data_quality_score)
            samples.extend(insights.sample_data)

            line = f"{name} leads: data quality {insights.data_quality_score}% ({insights.summary.total_leads} leads)"
            findings.append(line)
            if insights.data_quality_score < FAILING_DATA_QUALITY:
                worsen(ValidationStatus.FAIL)
                details.append(line)
            elif insights.data_quality_score < WARNING_DATA_QUALITY:
                worsen(ValidationStatus.WARNING)
                details.append(line)
            if insights.possible_duplicates:
                details.append(
                    f"{name} leads: {len(insights.possible_duplicates)} possible duplicate(s) by name and company"
                )

            if icp is not None:
                analyses = score_leads(lead_set, classifications, icp, self.config.icp.weights)
                summary = summarize_matches(
                    analyses, excluded=len(classifications) - len(eligible_indices(classifications)),
                )
                icp_line = (
                    f"{name} ICP: {summary.strong} strong, {summary.partial} partial, "
                    f"{summary.weak} weak, {summary.mismatch} mismatch"
                )
                if summary.low_confidence:
                    icp_line += " (low confidence: no ICP criteria)"
                    worsen(ValidationStatus.WARNING)
                findings.append(icp_line)
                details.append(icp_line)

                competitors = detect_competitors(lead_set, icp.competitor_domains, classifications)
                if competitors:
                    worsen(ValidationStatus.WARNING)
                    line = f"{name} leads: {len(competitors)} possible competitor(s)"
                    findings.append(line)
                    details.append(line)
                    details.extend(f"{name} leads: {f.email} {f.reason}" for f in competitors)

        suggestions = []
        message = "Email copy and leads look good"
        if self.provider is not None:
            ai_result = self._ai_review(campaigns, samples, lead_count, quality_scores, findings, icp, client_name)
            if isinstance(ai_result, ValidationResult):
                return ai_result
            suggestions, ai_status, ai_summary = ai_result
            worsen(ai_status)
            if ai_summary:
                message = ai_summary

        if status is ValidationStatus.FAIL and self.provider is None:
            message = "Email copy or leads have blocking problems"
        elif status is ValidationStatus.WARNING and self.provider is None:
            message = "Email copy or leads need attention"

        return ValidationResult(status, message, details=details, suggestions=suggestions)

    def _ai_review(self, campaigns, samples, lead_count, quality_scores, findings, icp, client_name):
        from leadlint.ai.prompts import (
            COPY_REVIEW_PROMPT,
            COPY_REVIEW_SYSTEM,
            format_emails_block,
            format_lead_sample,
        )
        from leadlint.stages.suggestions import map_fix_list

        prompt = COPY_REVIEW_PROMPT.format(
            client_name=client_name or "(unknown)",
            icp_summary=_icp_summary(icp),
            emails_block=format_emails_block(campaigns, self.config.ai.max_body_chars),
            lead_count=lead_count,
            data_quality_score=round(sum(quality_scores) / len(quality_scores)) if quality_scores else 0,
            lead_sample=format_lead_sample(samples),
            local_findings="\n".join(findings) or "(none)",
        )

        try:
            response = self.provider.complete(prompt, self.model, system=COPY_REVIEW_SYSTEM, response_format="json")
        except ConnectionError as e:
            logger.error("AI copy review failed: %s", e)
            return ValidationResult(ValidationStatus.FAIL, f"AI review unavailable: {e}")
        except Exception as e:
            logger.exception("AI copy review failed")
            return ValidationResult(ValidationStatus.FAIL, f"AI review failed: {e}")

        if isinstance(response, list):
            fixes, ai_status, summary = response, ValidationStatus.PASS, ""
        elif not isinstance(response, dict) or not ({"fixes", "status"} & response.keys()):
            logger.warning("AI copy review returned no fixes or status: %.200s", response)
            return [], ValidationStatus.WARNING, "AI review returned no structured result"
        else:
            fixes = response.get("fixes") or []
            summary = str(response.get("summary") or "")
            try:
                ai_status = ValidationStatus(str(response.get("status", "pass")).lower())
            except ValueError:
                ai_status = ValidationStatus.WARNING

        counts = [(c.campaign_id, len(c.sequences)) for c in campaigns]
        suggestions = map_fix_list(fixes if isinstance(fixes, list) else [], counts)
        if suggestions and ai_status is ValidationStatus.PASS:
            ai_status = ValidationStatus.WARNING
        return suggestions, ai_status, summary


def _icp_summary(icp: ICPCriteria | None) -> str:
    if icp is None or icp.is_empty():
        return "(no ICP defined)"
    parts = []
    for label, values in (
        ("titles", icp.titles + icp.title_keywords),
        ("industries", icp.industries),
        ("company sizes", icp.company_sizes),
        ("locations", icp.locations),
    ):
        if values:
            parts.append(f"{label}: {', '.join(values)}")
    return "; ".join(parts)


class ValidationRunner:
    """Runs validators by category, memoizing results in a caller-owned cache."""

    def __init__(
        self,
        cache: ValidationCache,
        validators: dict[ValidationCategory, Validator] | None = None,
    ):
        self.cache = cache
        self.validators: dict[ValidationCategory, Validator] = {
            ValidationCategory.CLIENT_CAMPAIGN: validate_campaign_config,
            ValidationCategory.MAILBOX_HEALTH: validate_mailbox_health,
            ValidationCategory.COPY_LEADS: CopyLeadsValidator(),
        }
        if validators:
            self.validators.update(validators)
        self.client_id: str | None = None
        self.statuses = {c: ValidationStatus.IDLE for c in ValidationCategory}

    def select_client(self, client_id: str | None) -> None:
        """Switching clients drops every cached result."""
        if client_id != self.client_id:
            self.cache.invalidate_all()
            self.statuses = {c: ValidationStatus.IDLE for c in ValidationCategory}
            logger.info("Client changed to %s; validation cache cleared", client_id)
        self.client_id = client_id

    def run(
        self,
        category: ValidationCategory | str,
        fingerprint: str,
        *args,
        force: bool = False,
        **kwargs,
    ) -> ValidationResult:
        """Return the cached result for a matching fingerprint, else run the validator.

        Validator exceptions become a FAIL result and are not cached.
        """
        category = ValidationCategory(category)
        cacheable = category not in UNCACHED_CATEGORIES

        if cacheable and not force:
            cached = self.cache.get(category, fingerprint)
            if cached is not None:
                logger.debug("Using cached %s validation", category.value)
                return cached

        self.statuses[category] = ValidationStatus.VALIDATING
        try:
            result = self.validators[category](*args, **kwargs)
        except Exception as e:
            logger.exception("%s validation failed", category.value)
            result = ValidationResult(ValidationStatus.FAIL, f"Validation failed: {e}")
            self.statuses[category] = result.status
            return result

        self.statuses[category] = result.status
        if cacheable:
            self.cache.put(category, fingerprint, result)
        return result

    def run_all(
        self,
        campaigns: list[CampaignDetails],
        mailboxes: list[MailboxAccount],
        lead_sets: dict[str, LeadSet] | None = None,
        icp: ICPCriteria | None = None,
        force: bool = False,
    ) -> dict[ValidationCategory, ValidationResult]:
        """Client/campaign, then mailbox health, then copy/leads."""
        campaign_fp = campaign_fingerprint(self.client_id, campaigns)
        return {
            ValidationCategory.CLIENT_CAMPAIGN: self.run(
                ValidationCategory.CLIENT_CAMPAIGN, campaign_fp, campaigns, force=force,
            ),
            ValidationCategory.MAILBOX_HEALTH: self.run(
                ValidationCategory.MAILBOX_HEALTH, mailbox_fingerprint(self.client_id, mailboxes),
                mailboxes, force=force,
            ),
            ValidationCategory.COPY_LEADS: self.run(
                ValidationCategory.COPY_LEADS, campaign_fp, campaigns, lead_sets, icp, force=force,
            ),
        }
