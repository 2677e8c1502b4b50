"""Tests for the suggestion diff engine."""

import logging

import pytest

from leadlint.models import (
    CampaignDetails,
    CampaignSequence,
    InlineSuggestionItem,
    SuggestionLocation,
    SuggestionState,
)
from leadlint.stages.suggestions import (
    SuggestionBoard,
    apply_suggestion,
    changed_token_count,
    compute_diff,
    dismiss_suggestion,
    map_fix_list,
    tokenize,
)


def _item(item_id="s1", original="friend", suggested="buddy", campaign_id="c1", email_index=0, field="body"):
    return InlineSuggestionItem(
        id=item_id,
        type="tone",
        severity="suggestion",
        message="Warmer greeting",
        original=original,
        suggested=suggested,
        location=SuggestionLocation(email_index=email_index, field=field, campaign_id=campaign_id),
    )


def test_tokenize_keeps_whitespace():
    assert tokenize("Hi  there\nfriend") == ["Hi", "  ", "there", "\n", "friend"]
    assert tokenize("") == []


def test_diff_phrase_swap():
    diff = compute_diff("Hi there friend, thanks", "Hi there buddy, thanks")
    assert [(s.kind, s.text) for s in diff] == [
        ("same", "Hi there "),
        ("removed", "friend,"),
        ("added", "buddy,"),
        ("same", " thanks"),
    ]
    assert changed_token_count(diff) == 2


def test_diff_identical_is_noop():
    diff = compute_diff("Same text here", "Same text here")
    assert [(s.kind, s.text) for s in diff] == [("same", "Same text here")]
    assert changed_token_count(diff) == 0


def test_diff_pure_insertion():
    diff = compute_diff("Book a call", "Book a quick call")
    kinds = [s.kind for s in diff]
    assert "removed" not in kinds
    assert ("added", "quick ") in [(s.kind, s.text) for s in diff]


def test_diff_rewrite_is_one_replacement():
    diff = compute_diff("alpha beta", "gamma delta")
    assert [(s.kind, s.text) for s in diff] == [("removed", "alpha beta"), ("added", "gamma delta")]


def test_diff_reassembles_both_sides():
    original, suggested = "We help teams ship faster today", "We help small teams ship today"
    diff = compute_diff(original, suggested)
    assert "".join(s.text for s in diff if s.kind != "added") == original
    assert "".join(s.text for s in diff if s.kind != "removed") == suggested


def test_apply_replaces_first_occurrence():
    item = _item()
    result = apply_suggestion(item, "Hi friend, my friend")
    assert result.text == "Hi buddy, my friend"
    assert result.changed
    assert item.applied
    assert item.state is SuggestionState.APPLIED


def test_apply_identical_pair_is_noop():
    item = _item(original="Hello", suggested="Hello")
    result = apply_suggestion(item, "Hello there")
    assert result.text == "Hello there"
    assert not result.changed


def test_apply_missing_target_still_marks_applied(caplog):
    item = _item(original="not present")
    with caplog.at_level(logging.WARNING, logger="leadlint.stages.suggestions"):
        result = apply_suggestion(item, "Hi friend")
    assert result.text == "Hi friend"
    assert not result.changed
    assert item.applied
    assert "not found" in caplog.text


def test_applied_item_is_inert():
    item = _item()
    apply_suggestion(item, "Hi friend")
    result = apply_suggestion(item, "Hi friend again")
    assert result.text == "Hi friend again"
    assert not result.changed


def test_dismiss():
    item = dismiss_suggestion(_item())
    assert item.dismissed
    assert not item.applied
    result = apply_suggestion(item, "Hi friend")
    assert result.text == "Hi friend"
    assert item.state is SuggestionState.DISMISSED


def test_dismiss_after_apply_keeps_applied():
    item = _item()
    apply_suggestion(item, "Hi friend")
    dismiss_suggestion(item)
    assert item.applied and not item.dismissed


class TestSuggestionBoard:
    def test_active_and_counts(self):
        board = SuggestionBoard()
        board.extend([
            _item("a"),
            _item("b", field="subject"),
            _item("c"),
            _item("d", campaign_id="c2"),
        ])

        assert len(board) == 4
        assert [i.id for i in board.active("c1", 0)] == ["a", "b", "c"]
        assert [i.id for i in board.active("c1", 0, field="subject")] == ["b"]

        board.apply("a", "Hi friend")
        board.dismiss("c")

        assert [i.id for i in board.active("c1", 0)] == ["b"]
        assert board.counts() == {"total": 4, "applied": 1, "dismissed": 1, "active": 2}
        assert board.counts("c1") == {"total": 3, "applied": 1, "dismissed": 1, "active": 1}

    def test_dismissed_never_reoffered(self):
        board = SuggestionBoard()
        board.add(_item("a"))
        board.dismiss("a")
        board.dismiss("a")
        assert board.active("c1", 0) == []
        assert board.get("c1", 0)[0].dismissed

    def test_unknown_id(self):
        with pytest.raises(KeyError):
            SuggestionBoard().apply("missing", "text")

    def test_clear(self):
        board = SuggestionBoard()
        board.extend([_item("a"), _item("b", campaign_id="c2")])
        board.clear("c1")
        assert board.get("c1", 0) == []
        assert len(board) == 1
        board.clear()
        assert len(board) == 0

    def test_apply_pending_edits_campaign_steps(self):
        campaign = CampaignDetails(campaign_id="c1", sequences=[
            CampaignSequence(step=2, body="Following up, friend."),
            CampaignSequence(step=1, subject="Quick question", body="Hi friend"),
        ])
        board = SuggestionBoard()
        board.extend([
            _item("a", original="Quick question", suggested="Idea for Acme", field="subject"),
            _item("b", original="Following up", suggested="Circling back", email_index=1),
            _item("c", original="not there", suggested="x", email_index=1),
            _item("d", email_index=0),
        ])
        board.dismiss("d")

        assert board.apply_pending([campaign]) == 2
        steps = {s.step: s for s in campaign.sequences}
        assert steps[1].subject == "Idea for Acme"
        assert steps[1].body == "Hi friend"
        assert steps[2].body == "Circling back, friend."
        assert board.counts() == {"total": 4, "applied": 3, "dismissed": 1, "active": 0}


def test_map_fix_list_offsets():
    campaigns = [("c1", 3), ("c2", 2)]
    fixes = [
        {"type": "subject", "severity": "warning", "message": "m", "original": "a", "suggested": "b",
         "location": {"emailIndex": 0, "field": "subject"}},
        {"type": "body", "severity": "error", "message": "m", "original": "a", "suggested": "b",
         "location": {"emailIndex": 4, "field": "body"}},
        {"original": "a", "suggested": "b", "location": {"email_index": 3, "field": "body"}},
    ]
    items = map_fix_list(fixes, campaigns)

    assert [(i.location.campaign_id, i.location.email_index) for i in items] == [
        ("c1", 0), ("c2", 1), ("c2", 0),
    ]
    assert items[2].type == "body"
    assert items[2].severity == "suggestion"
    assert all(i.is_pending for i in items)
    assert len({i.id for i in items}) == 3


def test_map_fix_list_skips_bad_fixes(caplog):
    campaigns = [("c1", 2)]
    fixes = [
        {"original": "a", "suggested": "b", "location": {"emailIndex": 2, "field": "body"}},
        {"original": "a", "suggested": "b", "location": {"emailIndex": -1, "field": "body"}},
        {"original": "a", "suggested": "b", "location": {"emailIndex": "1", "field": "body"}},
        {"original": "a", "suggested": "b", "location": {"emailIndex": 1, "field": "footer"}},
        {"original": None, "suggested": "b", "location": {"emailIndex": 1, "field": "body"}},
        "not a fix",
        {"id": "keep", "original": "a", "suggested": "b", "location": {"emailIndex": 1, "field": "body"}},
    ]
    with caplog.at_level(logging.WARNING, logger="leadlint.stages.suggestions"):
        items = map_fix_list(fixes, campaigns)
    assert [i.id for i in items] == ["keep"]
    assert caplog.text.count("Skipping fix") == 6
