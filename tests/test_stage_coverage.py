"""Tests for field coverage, distributions and lead insights."""

from leadlint.stages.coverage import (
    build_insights,
    cleaned_leads_stats,
    distribution,
    field_coverage,
    name_company_duplicates,
    normalize_title,
)
from leadlint.models import LeadSet
from leadlint.stages.emails import classify_emails
from leadlint.stages.leads import parse_lead_csv


def test_field_coverage(lead_set):
    coverage = {c.field: c for c in field_coverage(lead_set)}
    assert coverage["email"].percentage == 100
    assert coverage["title"].count == 6
    # No LinkedIn column at all
    assert coverage["linkedin_url"].percentage == 0
    assert coverage["linkedin_url"].count == 0


def test_field_coverage_rounds_partial_columns():
    lead_set = parse_lead_csv("email,company\na@x.com,X\nb@x.com,\nc@x.com,\n")
    coverage = {c.field: c for c in field_coverage(lead_set)}
    assert coverage["company"].count == 1
    assert coverage["company"].percentage == 33


def test_normalize_title():
    assert normalize_title("Chief Executive Officer") == "CEO"
    assert normalize_title("Senior Vice President  of Sales") == "SVP of Sales"
    assert normalize_title("vice president, marketing") == "VP, marketing"


def test_distribution_orders_by_count_then_first_seen():
    items = distribution(["b", "a", "a", "c", "b", "d", ""], top_n=3)
    assert [(i.value, i.count) for i in items] == [("b", 2), ("a", 2), ("c", 1)]
    assert items[0].percentage == 33


def test_distribution_skips_empty_values():
    assert distribution(["", "  "]) == []


def test_build_insights_summary(lead_set):
    insights = build_insights(lead_set)
    s = insights.summary
    assert s.total_leads == 6
    assert s.valid_leads == 5
    assert s.invalid_leads == 1
    assert s.duplicates_found == 1
    assert s.disposable_found == 1
    assert s.generic_found == 1
    assert s.clean_leads == 3
    assert insights.data_quality_score == 50


def test_build_insights_distributions(lead_set, classifications):
    insights = build_insights(lead_set, classifications)
    titles = insights.distributions.job_titles
    assert titles[0].value == "VP of Sales"
    assert titles[0].count == 2
    assert titles[1].value == "CEO"

    industries = insights.distributions.industries
    assert (industries[0].value, industries[0].count, industries[0].percentage) == ("SaaS", 4, 67)

    # Invalid address excluded, domains lower-cased
    domains = {d.value: d.count for d in insights.distributions.email_domains}
    assert domains == {"acme.io": 3, "globex.com": 1, "mailinator.com": 1}


def test_build_insights_issues(lead_set):
    issues = build_insights(lead_set).issues
    assert issues.invalid_emails == ["not-an-email"]
    assert issues.disposable_emails == ["dan@mailinator.com"]
    assert issues.generic_emails == ["info@globex.com"]
    assert issues.duplicate_emails == ["ada@acme.io"]


def test_build_insights_sample_data(lead_set):
    insights = build_insights(lead_set, sample_size=2)
    assert len(insights.sample_data) == 2
    assert insights.sample_data[0]["first_name"] == "Ada"
    assert insights.sample_data[0]["title"] == "VP of Sales"


def test_empty_lead_set_scores_zero():
    lead_set = LeadSet(headers=["email"], columns={"email": "email"})
    insights = build_insights(lead_set)
    assert insights.data_quality_score == 0
    assert insights.summary.total_leads == 0


def test_cleaned_leads_stats(lead_set):
    stats = cleaned_leads_stats(build_insights(lead_set))
    assert stats["cleaned_count"] == 3
    assert stats["removed_count"] == 3
    assert stats["generic_count"] == 1


def test_name_company_duplicates():
    lead_set = parse_lead_csv(
        "First Name,Last Name,Email,Company\n"
        "Ada,Lovelace,ada@acme.io,Acme Corp\n"
        "ada,LOVELACE,a.lovelace@acme.io,AcmeCorp\n"
        "Ada,Lovelace,ada@acme.io,Acme Corp\n"
        "Ada,Lovelace,ada@other.io,\n"
        "Bob,Stone,bob@acme.io,Acme Corp\n"
    )
    found = name_company_duplicates(lead_set, classify_emails(lead_set.emails()))
    assert [(d.row_index, d.email, d.duplicate_of) for d in found] == [
        (1, "a.lovelace@acme.io", "ada@acme.io"),
    ]


def test_insights_carry_possible_duplicates(lead_set, classifications):
    insights = build_insights(lead_set, classifications)
    assert insights.possible_duplicates == []
