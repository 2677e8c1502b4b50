"""Stage 5: Word-level diffs and stateful inline suggestions from an AI fix list."""

from __future__ import annotations

import logging
import re
import uuid

from leadlint.models import (
    ApplyResult,
    CampaignDetails,
    DiffSegment,
    InlineSuggestionItem,
    SuggestionLocation,
    SuggestionState,
)

logger = logging.getLogger(__name__)

SUGGESTION_FIELDS = ("subject", "body")
SEVERITIES = ("error", "warning", "suggestion")


def tokenize(text: str) -> list[str]:
    """Split on whitespace, keeping the whitespace runs as their own tokens."""
    return [t for t in re.split(r"(\s+)", text or "") if t]


def compute_diff(original: str, suggested: str) -> list[DiffSegment]:
    """Common token prefix and suffix, with the middle as one removed/added pair.

    Not an LCS: wholesale rewrites come back as one large replacement.
    """
    a = tokenize(original)
    b = tokenize(suggested)

    prefix = 0
    while prefix < len(a) and prefix < len(b) and a[prefix] == b[prefix]:
        prefix += 1

    suffix = 0
    while (
        suffix < len(a) - prefix
        and suffix < len(b) - prefix
        and a[len(a) - 1 - suffix] == b[len(b) - 1 - suffix]
    ):
        suffix += 1

    segments = []
    if prefix:
        segments.append(DiffSegment("same", "".join(a[:prefix])))
    removed = "".join(a[prefix:len(a) - suffix])
    if removed:
        segments.append(DiffSegment("removed", removed))
    added = "".join(b[prefix:len(b) - suffix])
    if added:
        segments.append(DiffSegment("added", added))
    if suffix:
        segments.append(DiffSegment("same", "".join(a[len(a) - suffix:])))
    return segments


def changed_token_count(diff: list[DiffSegment]) -> int:
    """Number of non-whitespace tokens in removed and added segments."""
    return sum(
        len(seg.text.split())
        for seg in diff
        if seg.kind in ("removed", "added")
    )


def apply_suggestion(item: InlineSuggestionItem, current_text: str) -> ApplyResult:
    """Replace the first literal occurrence of ``item.original`` with ``item.suggested``.

    The item is marked applied even when the original text is no longer
    present; ``ApplyResult.changed`` tells the two cases apart. Items that
    are already applied or dismissed are left alone.
    """
    if not item.is_pending:
        return ApplyResult(text=current_text, changed=False, item=item)

    text = current_text
    if item.original and item.original in current_text:
        text = current_text.replace(item.original, item.suggested, 1)
    else:
        logger.warning(
            "Suggestion %s target text not found in %s of email %d; marking applied without change",
            item.id, item.location.field, item.location.email_index,
        )

    item.state = SuggestionState.APPLIED
    return ApplyResult(text=text, changed=text != current_text, item=item)


def dismiss_suggestion(item: InlineSuggestionItem) -> InlineSuggestionItem:
    if item.is_pending:
        item.state = SuggestionState.DISMISSED
    return item


class SuggestionBoard:
    """Suggestions keyed by (campaign_id, email_index)."""

    def __init__(self):
        self._items: dict[tuple[str | None, int], list[InlineSuggestionItem]] = {}

    def add(self, item: InlineSuggestionItem) -> None:
        key = (item.location.campaign_id, item.location.email_index)
        self._items.setdefault(key, []).append(item)

    def extend(self, items: list[InlineSuggestionItem]) -> None:
        for item in items:
            self.add(item)

    def get(self, campaign_id: str | None, email_index: int) -> list[InlineSuggestionItem]:
        return list(self._items.get((campaign_id, email_index), []))

    def find(self, item_id: str) -> InlineSuggestionItem | None:
        for items in self._items.values():
            for item in items:
                if item.id == item_id:
                    return item
        return None

    def active(
        self,
        campaign_id: str | None,
        email_index: int,
        field: str | None = None,
    ) -> list[InlineSuggestionItem]:
        """Pending suggestions for one email, optionally for one field."""
        return [
            item for item in self.get(campaign_id, email_index)
            if item.is_pending and (field is None or item.location.field == field)
        ]

    def counts(self, campaign_id: str | None = None) -> dict[str, int]:
        items = [
            item
            for (cid, _), group in self._items.items()
            if campaign_id is None or cid == campaign_id
            for item in group
        ]
        total = len(items)
        applied = sum(1 for i in items if i.applied)
        dismissed = sum(1 for i in items if i.dismissed)
        return {
            "total": total,
            "applied": applied,
            "dismissed": dismissed,
            "active": total - applied - dismissed,
        }

    def apply(self, item_id: str, current_text: str) -> ApplyResult:
        item = self.find(item_id)
        if item is None:
            raise KeyError(f"Unknown suggestion: {item_id}")
        return apply_suggestion(item, current_text)

    def dismiss(self, item_id: str) -> InlineSuggestionItem:
        item = self.find(item_id)
        if item is None:
            raise KeyError(f"Unknown suggestion: {item_id}")
        return dismiss_suggestion(item)

    def apply_pending(self, campaigns: list[CampaignDetails]) -> int:
        """Apply every pending suggestion to the campaigns' steps in place.

        Email indices count steps in step order within each campaign.
        Returns the number of suggestions that changed text.
        """
        changed = 0
        for campaign in campaigns:
            steps = sorted(campaign.sequences, key=lambda s: s.step)
            for index, seq in enumerate(steps):
                for item in self.active(campaign.campaign_id, index):
                    result = self.apply(item.id, getattr(seq, item.location.field))
                    setattr(seq, item.location.field, result.text)
                    changed += result.changed
        return changed

    def clear(self, campaign_id: str | None = None) -> None:
        if campaign_id is None:
            self._items.clear()
            return
        for key in [k for k in self._items if k[0] == campaign_id]:
            del self._items[key]

    def __len__(self) -> int:
        return sum(len(items) for items in self._items.values())


def _locate(global_index: int, campaigns: list[tuple[str, int]]) -> tuple[str, int] | None:
    """Map a 0-based index across all campaigns to (campaign_id, local index)."""
    if global_index < 0:
        return None
    offset = 0
    for campaign_id, sequence_count in campaigns:
        if global_index < offset + sequence_count:
            return campaign_id, global_index - offset
        offset += sequence_count
    return None


def map_fix_list(
    fixes: list[dict],
    campaigns: list[tuple[str, int]],
) -> list[InlineSuggestionItem]:
    """Turn an AI fix list into suggestion items.

    ``campaigns`` is the ordered (campaign_id, sequence_count) list the
    global ``emailIndex`` was numbered over. Malformed or out-of-range
    fixes are skipped with a warning.
    """
    items = []
    for n, fix in enumerate(fixes):
        if not isinstance(fix, dict):
            logger.warning("Skipping fix %d: not an object", n)
            continue

        location = fix.get("location") or {}
        raw_index = location.get("emailIndex", location.get("email_index"))
        field = location.get("field")
        original = fix.get("original")
        suggested = fix.get("suggested")

        if not isinstance(raw_index, int) or isinstance(raw_index, bool):
            logger.warning("Skipping fix %d: missing or non-integer emailIndex", n)
            continue
        if field not in SUGGESTION_FIELDS:
            logger.warning("Skipping fix %d: unknown field %r", n, field)
            continue
        if not isinstance(original, str) or not isinstance(suggested, str):
            logger.warning("Skipping fix %d: original/suggested must be strings", n)
            continue

        located = _locate(raw_index, campaigns)
        if located is None:
            logger.warning("Skipping fix %d: emailIndex %d out of range", n, raw_index)
            continue
        campaign_id, local_index = located

        severity = fix.get("severity", "suggestion")
        if severity not in SEVERITIES:
            severity = "suggestion"

        items.append(InlineSuggestionItem(
            id=str(fix.get("id") or uuid.uuid4().hex[:12]),
            type=str(fix.get("type") or field),
            severity=severity,
            message=str(fix.get("message") or ""),
            original=original,
            suggested=suggested,
            location=SuggestionLocation(
                email_index=local_index,
                field=field,
                campaign_id=campaign_id,
            ),
        ))
    return items
