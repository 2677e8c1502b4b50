"""Tests for merge-field preview."""

from leadlint.merge import display_name, find_lead_value, merge_email_with_lead

LEAD = {"First Name": "Ada", "Company Name": "Acme", "Job Title": "VP", "City": ""}


def test_merge_all_syntaxes():
    result = merge_email_with_lead("Hi {{first_name}} at {COMPANY} [[title]] {{city}}", LEAD)
    assert result.merged == "Hi Ada at Acme VP [City]"
    assert result.missing_fields == ["city"]


def test_merge_without_lead_marks_everything_missing():
    result = merge_email_with_lead("Hi {{first_name}}, {COMPANY_NAME} team", None)
    assert result.merged == "Hi [First Name], [Company Name] team"
    assert result.missing_fields == ["first_name", "COMPANY_NAME"]


def test_merge_leaves_plain_text_alone():
    result = merge_email_with_lead("No fields {here} or {{ spaced }}", LEAD)
    assert result.merged == "No fields {here} or {{ spaced }}"
    assert result.missing_fields == []
    assert merge_email_with_lead("", LEAD).merged == ""


def test_find_lead_value_exact_before_alias():
    lead = {"organization": "Org Inc", "company": "Direct Co"}
    assert find_lead_value(lead, "company") == "Direct Co"
    assert find_lead_value({"organization": "Org Inc"}, "company_name") == "Org Inc"
    assert find_lead_value({"Surname": "Lovelace"}, "lastName") == "Lovelace"
    assert find_lead_value(LEAD, "city") is None


def test_display_name():
    assert display_name("FIRST_NAME") == "First Name"
    assert display_name("company") == "Company"
