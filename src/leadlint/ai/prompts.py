"""Prompt templates for AI copy and lead-list review."""

from __future__ import annotations

from leadlint.models import CampaignDetails

COPY_REVIEW_SYSTEM = (
    "You are a cold-email deliverability reviewer. You point out concrete, "
    "surgical fixes and never rewrite whole emails."
)

COPY_REVIEW_PROMPT = """Review the email copy and lead sample for a cold outreach campaign.

CLIENT: {client_name}
ICP: {icp_summary}

EMAILS (numbered globally across campaigns, starting at 0):
{emails_block}

LEAD SAMPLE ({lead_count} leads, data quality score {data_quality_score}%):
{lead_sample}

LOCAL CHECKS ALREADY RUN:
{local_findings}

For each problem, quote the exact text to replace ("original" must appear
verbatim in that email's subject or body) and give the replacement.

Respond in JSON only:
{{
  "status": "pass | warning | fail",
  "summary": "one or two sentences for the reviewer",
  "fixes": [
    {{
      "type": "subject | body | personalization | tone | length | spam",
      "severity": "error | warning | suggestion",
      "message": "what is wrong and why",
      "original": "exact text from the email",
      "suggested": "replacement text",
      "location": {{"emailIndex": 0, "field": "subject | body"}}
    }}
  ]
}}"""


def format_emails_block(campaigns: list[CampaignDetails], max_body_chars: int = 2000) -> str:
    """Render every sequence step with the global index the fix list refers to."""
    lines = []
    index = 0
    for campaign in campaigns:
        for seq in sorted(campaign.sequences, key=lambda s: s.step):
            lines.append(f"[{index}] {campaign.campaign_name or campaign.campaign_id} - step {seq.step}")
            lines.append(f"SUBJECT: {seq.subject}")
            lines.append(f"BODY:\n{seq.body[:max_body_chars]}")
            lines.append("")
            index += 1
    return "\n".join(lines).strip()


def format_lead_sample(sample: list[dict], limit: int = 10) -> str:
    rows = []
    for lead in sample[:limit]:
        rows.append(", ".join(f"{k}={v}" for k, v in lead.items() if v))
    return "\n".join(rows) if rows else "(no leads uploaded)"
