"""leadlint CLI: Typer app with lead, ICP, copy, validate and diff subcommands."""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import Optional

import typer

app = typer.Typer(
    name="leadlint",
    help="Lead list and cold-email copy quality checks.",
    no_args_is_help=True,
)

leads_app = typer.Typer(help="Lead list checks and exports.")
app.add_typer(leads_app, name="leads")

icp_app = typer.Typer(help="Ideal Customer Profile scoring.")
app.add_typer(icp_app, name="icp")

copy_app = typer.Typer(help="Email copy analysis and review.")
app.add_typer(copy_app, name="copy")


def _read_leads(path: str):
    """Parse a lead CSV or exit 1 with the parse error."""
    from leadlint.stages.leads import LeadCSVError, read_lead_csv

    try:
        return read_lead_csv(path)
    except (LeadCSVError, FileNotFoundError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


def _load_campaigns(path: str):
    """Load campaigns from YAML/JSON: a 'campaigns' list, one campaign, or a bare step list."""
    from pathlib import Path

    import yaml
    from dacite import from_dict

    from leadlint.models import CampaignDetails

    p = Path(path)
    if not p.exists():
        typer.echo(f"Error: sequence file not found: {p}", err=True)
        raise typer.Exit(1)

    data = yaml.safe_load(p.read_text()) or []
    if isinstance(data, list):
        data = {"campaigns": [{"campaign_id": p.stem, "campaign_name": p.stem, "sequences": data}]}
    elif "campaigns" not in data:
        data = {"campaigns": [data]}

    return [from_dict(data_class=CampaignDetails, data=c) for c in data["campaigns"]]


def _resolve_model(model_arg: str | None, config) -> str:
    """Resolve the model spec from CLI arg or config.

    If the user passed --model, use that. Otherwise build from config
    (which includes .env overrides).
    """
    if model_arg:
        return model_arg
    return config.ai.model_spec


def _load_lexicons(config):
    from leadlint.lexicons import load_lexicons

    return load_lexicons(config.lexicon_file)


def _load_icp(criteria: str | None, config):
    """Explicit --criteria must exist; the configured default may be absent."""
    from leadlint.stages.icp import load_icp_criteria

    try:
        if criteria:
            return load_icp_criteria(criteria, required=True)
        return load_icp_criteria(config.icp.criteria_file)
    except FileNotFoundError:
        typer.echo(f"Error: ICP criteria file not found: {criteria}", err=True)
        raise typer.Exit(1)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


# --- Lead commands ---

@leads_app.command("analyze")
def leads_analyze(
    csv_path: str = typer.Argument(..., help="Lead list CSV."),
    top: Optional[int] = typer.Option(None, "--top", "-n", help="Distribution entries to show."),
    as_json: bool = typer.Option(False, "--json", help="Print the full insights as JSON."),
):
    """Classify emails and report coverage, distributions and data quality."""
    from leadlint.config import load_config
    from leadlint.stages.coverage import build_insights
    from leadlint.stages.leads import missing_recommended_fields

    config = load_config()
    lead_set = _read_leads(csv_path)
    insights = build_insights(
        lead_set,
        top_n=top or config.leads.top_n,
        sample_size=config.leads.sample_size,
        lexicons=_load_lexicons(config),
    )

    if as_json:
        typer.echo(json.dumps(asdict(insights), indent=2))
        return

    s = insights.summary
    typer.echo(f"Leads: {s.total_leads}")
    typer.echo(f"  Valid:        {s.valid_leads}")
    typer.echo(f"  Invalid:      {s.invalid_leads}")
    typer.echo(f"  Duplicates:   {s.duplicates_found}")
    typer.echo(f"  Disposable:   {s.disposable_found}")
    typer.echo(f"  Generic:      {s.generic_found} (flagged, kept)")
    typer.echo(f"  Clean:        {s.clean_leads}")
    typer.echo(f"Data quality score: {insights.data_quality_score}%")

    missing = missing_recommended_fields(lead_set)
    if missing:
        typer.echo(f"Missing recommended columns: {', '.join(missing)}")
    for dup in insights.possible_duplicates:
        typer.echo(f"Possible duplicate: {dup.email} (same name and company as {dup.duplicate_of})")

    typer.echo("\nField coverage:")
    for cov in insights.field_coverage:
        typer.echo(f"  {cov.field:15s} {cov.percentage:3d}%  ({cov.count})")

    for label, items in (
        ("Job titles", insights.distributions.job_titles),
        ("Industries", insights.distributions.industries),
        ("Company sizes", insights.distributions.company_sizes),
        ("Email domains", insights.distributions.email_domains),
    ):
        if not items:
            continue
        typer.echo(f"\n{label}:")
        for item in items:
            typer.echo(f"  {item.value:30s} {item.count:5d}  {item.percentage:3d}%")


@leads_app.command("clean")
def leads_clean(
    csv_path: str = typer.Argument(..., help="Lead list CSV."),
    output: str = typer.Option("cleaned_leads.csv", "--output", "-o", help="Output file path."),
    fmt: str = typer.Option("csv", "--format", "-f", help="Output format: csv or excel."),
):
    """Write valid, non-disposable, non-duplicate leads with their original columns."""
    from leadlint.config import load_config
    from leadlint.export import export_cleaned_leads
    from leadlint.stages.coverage import build_insights, cleaned_leads_stats
    from leadlint.stages.emails import classify_emails

    config = load_config()
    lead_set = _read_leads(csv_path)
    classifications = classify_emails(lead_set.emails(), _load_lexicons(config))

    try:
        path = export_cleaned_leads(lead_set, classifications, output_path=output, fmt=fmt)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    stats = cleaned_leads_stats(build_insights(lead_set, classifications))
    typer.echo(f"Exported {stats['cleaned_count']} cleaned leads to {path}")
    typer.echo(
        f"  Removed {stats['removed_count']} "
        f"(invalid {stats['invalid_count']}, disposable {stats['disposable_count']}, "
        f"duplicate {stats['duplicate_count']}); {stats['generic_count']} generic kept"
    )


@leads_app.command("issues")
def leads_issues(
    csv_path: str = typer.Argument(..., help="Lead list CSV."),
    output: str = typer.Option("issues_report.csv", "--output", "-o", help="Output file path."),
    fmt: str = typer.Option("csv", "--format", "-f", help="Output format: csv or excel."),
):
    """Write one row per data-quality issue (email, issue_type, details)."""
    from leadlint.config import load_config
    from leadlint.export import export_issues_report, issue_rows
    from leadlint.stages.emails import classify_emails

    config = load_config()
    lead_set = _read_leads(csv_path)
    classifications = classify_emails(lead_set.emails(), _load_lexicons(config))

    try:
        path = export_issues_report(classifications, output_path=output, fmt=fmt)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    typer.echo(f"Exported {len(issue_rows(classifications))} issues to {path}")


# --- ICP commands ---

@icp_app.command("score")
def icp_score(
    csv_path: str = typer.Argument(..., help="Lead list CSV."),
    criteria: Optional[str] = typer.Option(None, "--criteria", "-c", help="ICP criteria YAML. Default: from config."),
    level: str = typer.Option("all", "--level", "-l", help="Show only: strong, partial, weak, mismatch, all."),
    as_json: bool = typer.Option(False, "--json", help="Print analyses as JSON."),
):
    """Score eligible leads against the ICP, worst matches first."""
    from leadlint.config import load_config
    from leadlint.models import MatchLevel
    from leadlint.stages.emails import classify_emails, eligible_indices
    from leadlint.stages.icp import (
        detect_competitors,
        filter_by_level,
        score_leads,
        sort_for_review,
        summarize_matches,
    )

    if level != "all" and level not in {m.value for m in MatchLevel}:
        typer.echo(f"Unknown level: {level}. Use: strong, partial, weak, mismatch, all", err=True)
        raise typer.Exit(1)

    config = load_config()
    lead_set = _read_leads(csv_path)
    icp = _load_icp(criteria, config)
    classifications = classify_emails(lead_set.emails(), _load_lexicons(config))
    competitors = detect_competitors(lead_set, icp.competitor_domains, classifications)

    analyses = score_leads(lead_set, classifications, icp, config.icp.weights)
    excluded = len(classifications) - len(eligible_indices(classifications))
    summary = summarize_matches(analyses, excluded=excluded)
    shown = sort_for_review(filter_by_level(analyses, level))

    if as_json:
        payload = {
            "summary": asdict(summary),
            "leads": [{**asdict(a), "match_level": a.match_level.value} for a in shown],
            "competitors": [asdict(f) for f in competitors],
        }
        typer.echo(json.dumps(payload, indent=2))
        return

    if summary.low_confidence:
        typer.echo("Warning: no ICP criteria defined; scores are low confidence.")
    typer.echo(
        f"Scored {summary.total} leads (avg {summary.average_score}): "
        f"{summary.strong} strong, {summary.partial} partial, "
        f"{summary.weak} weak, {summary.mismatch} mismatch; {summary.excluded} excluded"
    )
    for a in shown:
        name = f"{a.first_name} {a.last_name}".strip() or a.email
        typer.echo(f"\n[{a.match_level.value:8s}] {a.match_score:3d}  {name} <{a.email}>  {a.title} @ {a.company}")
        for r in a.reasons:
            typer.echo(f"    {'+' if r.positive else '-'} {r.factor}")

    if competitors:
        typer.echo(f"\nCompetitor flags ({len(competitors)}):")
        for flag in competitors:
            typer.echo(f"  {flag.email}  {flag.reason}")


# --- Copy commands ---

@copy_app.command("analyze")
def copy_analyze(
    sequence_file: str = typer.Argument(..., help="YAML/JSON file with campaign sequences."),
    as_json: bool = typer.Option(False, "--json", help="Print analyses as JSON."),
):
    """Score subject lines and spam risk for every sequence step."""
    from leadlint.config import load_config
    from leadlint.stages.copy import analyze_sequence, detect_spintax, score_label

    config = load_config()
    lexicons = _load_lexicons(config)
    campaigns = _load_campaigns(sequence_file)

    results = []
    for campaign in campaigns:
        analyses = analyze_sequence(campaign.sequences, config.copy, lexicons)
        results.append((campaign, analyses))

    if as_json:
        payload = [
            {"campaign_id": c.campaign_id, "steps": [asdict(a) for a in analyses]}
            for c, analyses in results
        ]
        typer.echo(json.dumps(payload, indent=2))
        return

    for campaign, analyses in results:
        typer.echo(f"Campaign: {campaign.campaign_name or campaign.campaign_id}")
        steps = {s.step: s for s in campaign.sequences}
        for a in analyses:
            typer.echo(f"  Step {a.step}: {a.overall_score} ({score_label(a.overall_score)})")
            if a.subject is not None:
                typer.echo(f"    Subject score: {a.subject.score}")
                for issue in a.subject.issues:
                    typer.echo(f"      ! {issue}")
                for tip in a.subject.suggestions:
                    typer.echo(f"      > {tip}")
            typer.echo(f"    Spam score: {a.spam.score}")
            for m in a.spam.spam_words_found:
                typer.echo(f"      '{m.word}' x{m.count} in {', '.join(m.locations)}")
            for w in a.spam.warnings:
                typer.echo(f"      ! {w}")
            spin = detect_spintax(steps[a.step].body)
            if spin.has_spintax:
                typer.echo(f"    Spintax: {len(spin.groups)} groups, {spin.variant_count} variants")


@copy_app.command("preview")
def copy_preview(
    sequence_file: str = typer.Argument(..., help="YAML/JSON file with campaign sequences."),
    leads: str = typer.Option(..., "--leads", "-l", help="Lead list CSV."),
    row: int = typer.Option(0, "--row", "-r", help="0-based lead row to merge."),
):
    """Render each step with merge fields filled from one lead."""
    from leadlint.merge import merge_email_with_lead

    campaigns = _load_campaigns(sequence_file)
    lead_set = _read_leads(leads)
    if not 0 <= row < len(lead_set):
        typer.echo(f"Row {row} out of range (0-{len(lead_set) - 1})", err=True)
        raise typer.Exit(1)
    lead = lead_set.rows[row]

    for campaign in campaigns:
        for seq in sorted(campaign.sequences, key=lambda s: s.step):
            subject = merge_email_with_lead(seq.subject, lead)
            body = merge_email_with_lead(seq.body, lead)
            typer.echo(f"--- {campaign.campaign_name or campaign.campaign_id} step {seq.step} ---")
            if seq.step == 1:
                typer.echo(f"Subject: {subject.merged}")
            typer.echo(body.merged)
            missing = sorted(set(subject.missing_fields + body.missing_fields))
            if missing:
                typer.echo(f"(missing fields: {', '.join(missing)})")


@copy_app.command("review")
def copy_review(
    sequence_file: str = typer.Argument(..., help="YAML/JSON file with campaign sequences."),
    leads: Optional[str] = typer.Option(None, "--leads", "-l", help="Lead list CSV, attached to the first campaign."),
    criteria: Optional[str] = typer.Option(None, "--criteria", "-c", help="ICP criteria YAML."),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="AI model spec (provider:model). Default: from config/env."),
    no_ai: bool = typer.Option(False, "--no-ai", help="Run local checks only."),
    apply: bool = typer.Option(False, "--apply", help="Apply the AI suggestions and write the updated sequences."),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Where --apply writes. Default: overwrite the input file."),
):
    """Run the copy/leads validation, with AI-suggested fixes shown as diffs."""
    from leadlint.ai import get_provider
    from leadlint.config import load_config
    from leadlint.stages.suggestions import SuggestionBoard, compute_diff
    from leadlint.validation import CopyLeadsValidator

    config = load_config()
    campaigns = _load_campaigns(sequence_file)
    lead_sets = {campaigns[0].campaign_id: _read_leads(leads)} if leads and campaigns else {}
    icp = _load_icp(criteria, config) if criteria else None

    provider, model_name = None, ""
    if not no_ai:
        try:
            provider, model_name = get_provider(_resolve_model(model, config), config.ai.to_provider_dict())
        except ValueError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1)

    validator = CopyLeadsValidator(config, _load_lexicons(config), provider=provider, model=model_name)
    result = validator(campaigns, lead_sets, icp)

    typer.echo(f"Status: {result.status.value}")
    typer.echo(result.message)
    for detail in result.details:
        typer.echo(f"  - {detail}")

    for item in result.suggestions:
        loc = item.location
        typer.echo(f"\n[{item.severity}] {loc.campaign_id} email {loc.email_index} {loc.field}: {item.message}")
        typer.echo(f"  {_render_diff(compute_diff(item.original, item.suggested))}")

    if apply and result.suggestions:
        board = SuggestionBoard()
        board.extend(result.suggestions)
        changed = board.apply_pending(campaigns)
        target = output or sequence_file
        _write_campaigns(campaigns, target)
        typer.echo(f"\nApplied {changed} of {len(result.suggestions)} suggestions -> {target}")

    if result.status.value == "fail":
        raise typer.Exit(1)


def _write_campaigns(campaigns, path: str) -> None:
    from pathlib import Path

    import yaml

    data = {"campaigns": [asdict(c) for c in campaigns]}
    Path(path).write_text(yaml.safe_dump(data, sort_keys=False, allow_unicode=True))


def _render_diff(segments) -> str:
    parts = []
    for seg in segments:
        if seg.kind == "removed":
            parts.append(f"[-{seg.text}-]")
        elif seg.kind == "added":
            parts.append(f"{{+{seg.text}+}}")
        else:
            parts.append(seg.text)
    return "".join(parts)


# --- Full validation ---

def _load_mailboxes(path: str):
    """Load mailbox accounts from a YAML/JSON list or a 'mailboxes' mapping."""
    from pathlib import Path

    import yaml
    from dacite import from_dict

    from leadlint.models import MailboxAccount

    p = Path(path)
    if not p.exists():
        typer.echo(f"Error: mailbox file not found: {p}", err=True)
        raise typer.Exit(1)
    data = yaml.safe_load(p.read_text()) or []
    if isinstance(data, dict):
        data = data.get("mailboxes") or []
    return [from_dict(data_class=MailboxAccount, data=m) for m in data]


@app.command()
def validate(
    sequence_file: str = typer.Argument(..., help="YAML/JSON file with campaign sequences."),
    mailboxes: str = typer.Option(..., "--mailboxes", help="YAML/JSON list of sending mailboxes."),
    leads: Optional[str] = typer.Option(None, "--leads", "-l", help="Lead list CSV, attached to the first campaign."),
    criteria: Optional[str] = typer.Option(None, "--criteria", "-c", help="ICP criteria YAML."),
    client: Optional[str] = typer.Option(None, "--client", help="Client id the campaigns belong to."),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="AI model spec (provider:model). Default: from config/env."),
    no_ai: bool = typer.Option(False, "--no-ai", help="Run local checks only."),
):
    """Run campaign, mailbox and copy/leads checks in order."""
    from leadlint.ai import get_provider
    from leadlint.cache import ValidationCache
    from leadlint.config import load_config
    from leadlint.models import ValidationCategory, ValidationStatus
    from leadlint.validation import CopyLeadsValidator, ValidationRunner

    config = load_config()
    campaigns = _load_campaigns(sequence_file)
    accounts = _load_mailboxes(mailboxes)
    lead_sets = {campaigns[0].campaign_id: _read_leads(leads)} if leads and campaigns else {}
    icp = _load_icp(criteria, config) if criteria else None

    provider, model_name = None, ""
    if not no_ai:
        try:
            provider, model_name = get_provider(_resolve_model(model, config), config.ai.to_provider_dict())
        except ValueError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1)

    copy_validator = CopyLeadsValidator(config, _load_lexicons(config), provider=provider, model=model_name)
    runner = ValidationRunner(
        ValidationCache(config.cache.ttl_seconds),
        {ValidationCategory.COPY_LEADS: copy_validator},
    )
    runner.select_client(client)
    results = runner.run_all(campaigns, accounts, lead_sets, icp)

    for category, result in results.items():
        typer.echo(f"[{result.status.value:7s}] {category.value}: {result.message}")
        for detail in result.details:
            typer.echo(f"    - {detail}")
        if result.suggestions:
            typer.echo(f"    {len(result.suggestions)} suggestion(s); run 'copy review' to see them")

    if any(r.status is ValidationStatus.FAIL for r in results.values()):
        raise typer.Exit(1)


# --- Diff command ---

@app.command()
def diff(
    original: str = typer.Argument(..., help="Current text."),
    suggested: str = typer.Argument(..., help="Replacement text."),
):
    """Show the word-level diff between two texts."""
    from leadlint.stages.suggestions import changed_token_count, compute_diff

    segments = compute_diff(original, suggested)
    typer.echo(_render_diff(segments))
    typer.echo(f"{changed_token_count(segments)} changed tokens")


# --- Web server ---

@app.command()
def web(
    host: str = typer.Option("0.0.0.0", "--host", "-h", help="Bind host."),
    port: int = typer.Option(8000, "--port", "-p", help="Bind port."),
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload for development."),
):
    """Start the HTTP API."""
    import uvicorn

    typer.echo(f"Starting leadlint API at http://{host}:{port}/api")
    uvicorn.run(
        "leadlint.web.app:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


if __name__ == "__main__":
    app()
