"""REST API routes for lead processing, ICP matching, copy analysis, validation and diffs."""

from __future__ import annotations

from dataclasses import asdict
from functools import lru_cache

from dacite import from_dict
from fastapi import APIRouter, File, Form, HTTPException, UploadFile

from leadlint.cache import ValidationCache
from leadlint.config import Config, load_config
from leadlint.lexicons import Lexicons, load_lexicons
from leadlint.models import CampaignDetails, CampaignSequence, ICPCriteria, MailboxAccount, ValidationCategory
from leadlint.stages.copy import analyze_email, analyze_sequence, detect_spintax, score_label
from leadlint.stages.coverage import build_insights, cleaned_leads_stats
from leadlint.stages.emails import classify_emails, eligible_indices
from leadlint.stages.icp import (
    detect_competitors,
    filter_by_level,
    score_leads,
    sort_for_review,
    summarize_matches,
)
from leadlint.stages.leads import LeadCSVError, parse_lead_csv
from leadlint.stages.suggestions import SuggestionBoard, changed_token_count, compute_diff
from leadlint.validation import CopyLeadsValidator, ValidationRunner

router = APIRouter(tags=["api"])


@lru_cache(maxsize=1)
def get_settings() -> tuple[Config, Lexicons]:
    """Config and lexicons, loaded once per process."""
    config = load_config()
    return config, load_lexicons(config.lexicon_file)


@lru_cache(maxsize=1)
def get_validation_state() -> tuple[ValidationRunner, SuggestionBoard]:
    """Process-wide runner (with its result cache) and suggestion board."""
    config, _ = get_settings()
    return ValidationRunner(ValidationCache(config.cache.ttl_seconds)), SuggestionBoard()


def _parse_csv(text: str):
    try:
        return parse_lead_csv(text)
    except LeadCSVError as e:
        raise HTTPException(400, str(e))


@router.get("/health")
async def health():
    return {"status": "ok"}


@router.post("/process-leads")
async def process_leads(file: UploadFile = File(...), campaign_id: str = Form("")):
    """Upload a lead CSV; returns insights and cleaned-export counts."""
    config, lexicons = get_settings()

    raw = await file.read()
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(400, "CSV file must be UTF-8 encoded")

    lead_set = _parse_csv(text)
    classifications = classify_emails(lead_set.emails(), lexicons)
    insights = build_insights(
        lead_set, classifications,
        top_n=config.leads.top_n,
        sample_size=config.leads.sample_size,
        lexicons=lexicons,
    )
    return {
        "campaign_id": campaign_id or None,
        "file_name": file.filename,
        "columns": lead_set.columns,
        "insights": asdict(insights),
        "cleaned": cleaned_leads_stats(insights),
    }


@router.post("/icp-match")
async def icp_match(payload: dict):
    """Score a CSV (``csv``) against ICP ``criteria``; optional ``level`` filter."""
    config, lexicons = get_settings()

    csv_text = payload.get("csv")
    if not isinstance(csv_text, str):
        raise HTTPException(400, "Field 'csv' is required")
    try:
        icp = from_dict(data_class=ICPCriteria, data=payload.get("criteria") or {})
    except Exception as e:
        raise HTTPException(400, f"Invalid ICP criteria: {e}")

    level = payload.get("level", "all")
    if level not in ("all", "strong", "partial", "weak", "mismatch"):
        raise HTTPException(400, f"Unknown level: {level}")

    lead_set = _parse_csv(csv_text)
    classifications = classify_emails(lead_set.emails(), lexicons)
    analyses = score_leads(lead_set, classifications, icp, config.icp.weights)
    summary = summarize_matches(
        analyses, excluded=len(classifications) - len(eligible_indices(classifications)),
    )
    return {
        "summary": asdict(summary),
        "leads": [
            {**asdict(a), "match_level": a.match_level.value}
            for a in sort_for_review(filter_by_level(analyses, level))
        ],
        "competitors": [asdict(f) for f in detect_competitors(lead_set, icp.competitor_domains, classifications)],
    }


@router.post("/analyze-email")
async def analyze_email_copy(payload: dict):
    """Analyze one step (``subject``, ``body``, ``step``) or a whole ``sequences`` list."""
    config, lexicons = get_settings()

    if "sequences" in payload:
        try:
            sequences = [from_dict(data_class=CampaignSequence, data=s) for s in payload["sequences"]]
        except Exception as e:
            raise HTTPException(400, f"Invalid sequences: {e}")
        analyses = analyze_sequence(sequences, config.copy, lexicons)
        bodies = {s.step: s.body for s in sequences}
        return {
            "steps": [
                {
                    **asdict(a),
                    "label": score_label(a.overall_score),
                    "spintax": asdict(detect_spintax(bodies.get(a.step))),
                }
                for a in analyses
            ],
        }

    step = payload.get("step", 1)
    if not isinstance(step, int) or step < 1:
        raise HTTPException(400, "Field 'step' must be a positive integer")
    analysis = analyze_email(payload.get("subject", ""), payload.get("body", ""), step, config.copy, lexicons)
    return {
        **asdict(analysis),
        "label": score_label(analysis.overall_score),
        "spintax": asdict(detect_spintax(payload.get("body", ""))),
    }


@router.post("/diff")
async def diff(payload: dict):
    original = payload.get("original")
    suggested = payload.get("suggested")
    if not isinstance(original, str) or not isinstance(suggested, str):
        raise HTTPException(400, "Fields 'original' and 'suggested' are required")
    segments = compute_diff(original, suggested)
    return {
        "segments": [asdict(s) for s in segments],
        "changed_tokens": changed_token_count(segments),
    }


@router.post("/validate")
async def validate(payload: dict):
    """Run campaign, mailbox and copy/leads checks for ``campaigns`` and ``mailboxes``.

    Optional: ``client_id``, ``force``, ``leads`` (campaign id -> CSV text),
    ``criteria`` and ``ai``. Copy suggestions are kept for the apply and
    dismiss routes.
    """
    from leadlint.ai import get_provider

    config, lexicons = get_settings()
    runner, board = get_validation_state()

    try:
        campaigns = [from_dict(data_class=CampaignDetails, data=c) for c in payload.get("campaigns") or []]
        mailboxes = [from_dict(data_class=MailboxAccount, data=m) for m in payload.get("mailboxes") or []]
    except Exception as e:
        raise HTTPException(400, f"Invalid campaigns or mailboxes: {e}")

    leads = payload.get("leads") or {}
    if not isinstance(leads, dict) or not all(isinstance(t, str) for t in leads.values()):
        raise HTTPException(400, "Field 'leads' must map campaign id to CSV text")
    lead_sets = {cid: _parse_csv(text) for cid, text in leads.items()}

    icp = None
    if payload.get("criteria") is not None:
        try:
            icp = from_dict(data_class=ICPCriteria, data=payload["criteria"])
        except Exception as e:
            raise HTTPException(400, f"Invalid ICP criteria: {e}")

    provider, model = None, ""
    if payload.get("ai"):
        try:
            provider, model = get_provider(config.ai.model_spec, config.ai.to_provider_dict())
        except ValueError as e:
            raise HTTPException(400, str(e))
    runner.validators[ValidationCategory.COPY_LEADS] = CopyLeadsValidator(
        config, lexicons, provider=provider, model=model,
    )

    runner.select_client(payload.get("client_id"))
    results = runner.run_all(campaigns, mailboxes, lead_sets, icp, force=bool(payload.get("force")))

    for campaign in campaigns:
        board.clear(campaign.campaign_id)
    board.extend(results[ValidationCategory.COPY_LEADS].suggestions)

    return {
        "client_id": runner.client_id,
        "results": {category.value: asdict(result) for category, result in results.items()},
        "suggestions": board.counts(),
    }


@router.post("/suggestions/{item_id}/apply")
async def apply_suggestion(item_id: str, payload: dict):
    """Apply a suggestion to the caller's current ``text`` for its field."""
    _, board = get_validation_state()
    text = payload.get("text")
    if not isinstance(text, str):
        raise HTTPException(400, "Field 'text' is required")
    try:
        result = board.apply(item_id, text)
    except KeyError:
        raise HTTPException(404, f"Unknown suggestion: {item_id}")
    return {"text": result.text, "changed": result.changed, "item": asdict(result.item)}


@router.post("/suggestions/{item_id}/dismiss")
async def dismiss_suggestion(item_id: str):
    _, board = get_validation_state()
    try:
        item = board.dismiss(item_id)
    except KeyError:
        raise HTTPException(404, f"Unknown suggestion: {item_id}")
    return {"item": asdict(item)}
