"""Shared test fixtures."""

from __future__ import annotations

import pytest

from leadlint.models import CampaignDetails, CampaignSequence, ICPCriteria
from leadlint.stages.emails import classify_emails
from leadlint.stages.leads import parse_lead_csv

SAMPLE_CSV = """First Name,Last Name,Email,Company,Job Title,Industry,Company Size,Location
Ada,Lovelace,ada@acme.io,Acme,VP of Sales,SaaS,120,United States
Bob,Stone,BOB@acme.io,Acme,Chief Executive Officer,SaaS,120,United States
Cara,Diaz,info@globex.com,Globex,Marketing Manager,Retail,5000,Germany
Dan,Reed,dan@mailinator.com,Initech,Intern,SaaS,60,Canada
Eve,Ng,not-an-email,Hooli,Head of Growth,Fintech,60,United States
Fay,Wu,ada@acme.io,Acme,VP of Sales,SaaS,120,United States
"""


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Keep a developer's .env overrides out of the tests."""
    for key in ("model_name", "ollama_host", "ollama_api_key", "LEADLINT_CONFIG"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def sample_csv_text():
    return SAMPLE_CSV


@pytest.fixture
def sample_csv_file(tmp_path):
    path = tmp_path / "leads.csv"
    path.write_text(SAMPLE_CSV)
    return path


@pytest.fixture
def lead_set():
    """Six leads: two clean, one generic, one disposable, one invalid, one duplicate."""
    return parse_lead_csv(SAMPLE_CSV)


@pytest.fixture
def classifications(lead_set):
    return classify_emails(lead_set.emails())


@pytest.fixture
def icp_criteria():
    return ICPCriteria(
        titles=["VP of Sales", "CEO"],
        title_keywords=["chief", "vp"],
        industries=["SaaS"],
        company_sizes=["50-500"],
        locations=["United States"],
        exclude_domains=["globex.com"],
        exclude_title_keywords=["intern"],
    )


@pytest.fixture
def good_campaign():
    """A two-step campaign whose copy has no spam words and a strong subject."""
    return CampaignDetails(
        campaign_id="camp_1",
        campaign_name="Q3 Outbound",
        platform="instantly",
        sequences=[
            CampaignSequence(
                step=1,
                subject="{{first_name}}, a proven strategy for growth",
                body="<p>Hi {{first_name}},</p><p>We help SaaS teams scale outbound. Worth a chat?</p>",
            ),
            CampaignSequence(step=2, body="Just bumping this up.", wait_days=3, thread_reply=True),
        ],
    )


class FakeProvider:
    """Stands in for an AI provider; records prompts and returns a canned response."""

    def __init__(self, response=None, error: Exception | None = None):
        self.response = response if response is not None else {"status": "pass", "fixes": []}
        self.error = error
        self.calls: list[dict] = []

    def complete(self, prompt, model, system="", response_format=None):
        self.calls.append({"prompt": prompt, "model": model, "system": system, "format": response_format})
        if self.error:
            raise self.error
        return self.response


@pytest.fixture
def fake_provider_cls():
    return FakeProvider
