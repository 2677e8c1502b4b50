"""Stage 4: Email copy quality: subject heuristics, spam lexicon, spintax."""

from __future__ import annotations

import re
from functools import lru_cache

from leadlint.config import CopyConfig
from leadlint.lexicons import DEFAULT_LEXICONS, Lexicons
from leadlint.models import (
    CampaignSequence,
    EmailAnalysis,
    SpamAnalysis,
    SpamWordMatch,
    SpintaxInfo,
    SubjectLineAnalysis,
)

# Merge-field styles used by the sending platforms.
PERSONALIZATION_PATTERNS = [
    re.compile(r"\{\{\s*[A-Za-z_]+\s*\}\}"),   # {{first_name}}
    re.compile(r"\{[A-Za-z_]+\}"),              # {FIRST_NAME}
    re.compile(r"\[\[?[A-Za-z_]+\]?\]"),        # [[first_name]] / [first_name]
    re.compile(r"%[A-Za-z_]+%"),                # %first_name%
]

EMOJI_PATTERN = re.compile(r"[\U0001F300-\U0001F9FF\u2600-\u26FF\u2700-\u27BF]")
FAKE_REPLY_PATTERN = re.compile(r"^(re|fwd?):", re.IGNORECASE)
SPINTAX_PATTERN = re.compile(r"\{([^{}|]*(?:\|[^{}|]*)+)\}")
BLOCK_TAGS = ["p", "div", "li", "tr", "h1", "h2", "h3", "h4", "h5", "h6", "table"]

HIGH_SPAM_WORD_COUNT = 5
LIKELY_SPAM_SCORE = 50

SCORE_LABELS = [
    (90, "Excellent"),
    (80, "Good"),
    (70, "Fair"),
    (50, "Needs Work"),
]


@lru_cache(maxsize=1024)
def _word_pattern(word: str) -> re.Pattern:
    """Whole-word, case-insensitive pattern that tolerates punctuation in the word."""
    return re.compile(r"(?<!\w)" + re.escape(word) + r"(?!\w)", re.IGNORECASE)


def html_to_text(html: str | None) -> str:
    """Strip markup from an email body and normalize whitespace."""
    if not html:
        return ""
    if "<" in html and ">" in html:
        from bs4 import BeautifulSoup

        soup = BeautifulSoup(html, "lxml")
        for tag in soup.find_all(["script", "style"]):
            tag.decompose()
        for br in soup.find_all("br"):
            br.replace_with("\n")
        for block in soup.find_all(BLOCK_TAGS):
            block.append("\n")
        text = soup.get_text()
    else:
        text = html

    text = text.replace("\xa0", " ")
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r" *\n *", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def score_label(score: int) -> str:
    for threshold, label in SCORE_LABELS:
        if score >= threshold:
            return label
    return "Poor"


def _clamp(score: float) -> int:
    return max(0, min(100, round(score)))


def find_spam_words(text: str, lexicons: Lexicons = DEFAULT_LEXICONS) -> dict[str, int]:
    """Count whole-word lexicon hits in text, lexicon order."""
    counts: dict[str, int] = {}
    if not text:
        return counts
    for word in lexicons.spam_words:
        found = len(_word_pattern(word).findall(text))
        if found:
            counts[word] = found
    return counts


def spam_word_positions(
    text: str,
    lexicons: Lexicons = DEFAULT_LEXICONS,
) -> list[tuple[int, int, str]]:
    """(start, end, word) spans for highlighting, non-overlapping, longest first at a position."""
    spans = []
    for word in lexicons.spam_words:
        for m in _word_pattern(word).finditer(text or ""):
            spans.append((m.start(), m.end(), word))
    spans.sort(key=lambda s: (s[0], -(s[1] - s[0])))

    result = []
    last_end = -1
    for start, end, word in spans:
        if start >= last_end:
            result.append((start, end, word))
            last_end = end
    return result


def analyze_spam(
    subject: str,
    body: str,
    config: CopyConfig | None = None,
    lexicons: Lexicons = DEFAULT_LEXICONS,
) -> SpamAnalysis:
    """Score subject and body against the spam lexicon.

    Each occurrence deducts the location's base penalty, divided by
    ``repeat_divisor`` once more for every earlier occurrence of the same
    word. Subject occurrences are counted before body occurrences.
    """
    config = config or CopyConfig()
    penalties = config.spam_penalties

    subject_hits = find_spam_words(subject, lexicons)
    body_hits = find_spam_words(body, lexicons)

    matches: dict[str, SpamWordMatch] = {}
    deduction = 0.0
    for location, hits, base in (
        ("subject", subject_hits, penalties.subject_occurrence),
        ("body", body_hits, penalties.body_occurrence),
    ):
        for word, count in hits.items():
            match = matches.setdefault(word, SpamWordMatch(word=word))
            for _ in range(count):
                deduction += base / (penalties.repeat_divisor ** match.count)
                match.count += 1
            if location not in match.locations:
                match.locations.append(location)

    score = _clamp(100 - deduction) if matches else 100
    # Any hit must keep the score below 100.
    if matches and score == 100:
        score = 99

    warnings = []
    if subject_hits:
        n = len(subject_hits)
        warnings.append(f"{n} spam word{'s' if n > 1 else ''} in subject")
    if len(matches) >= HIGH_SPAM_WORD_COUNT:
        warnings.append("High overall spam word count")
    if score < LIKELY_SPAM_SCORE:
        warnings.append("Email likely to be flagged as spam")

    return SpamAnalysis(score=score, spam_words_found=list(matches.values()), warnings=warnings)


def _all_caps_words(subject: str) -> list[str]:
    words = [w for w in subject.split() if len(w) > 2]
    caps = []
    for word in words:
        # Merge fields are conventionally upper-case.
        if re.search(r"\{.*\}", word) or re.fullmatch(r"\[.*\]", word):
            continue
        if word == word.upper() and re.search(r"[A-Z]", word):
            caps.append(word)
    return caps


def analyze_subject(
    subject: str,
    config: CopyConfig | None = None,
    lexicons: Lexicons = DEFAULT_LEXICONS,
) -> SubjectLineAnalysis:
    config = config or CopyConfig()
    penalties = config.subject_penalties
    subject = (subject or "").strip()

    result = SubjectLineAnalysis(length=len(subject))
    score = 100

    if result.length == 0:
        result.issues.append("Subject line is empty")
        score -= penalties.empty
    elif result.length < config.min_subject_length:
        result.issues.append("Subject line may be too short")
        result.suggestions.append("Aim for 30-50 characters for optimal open rates")
        score -= penalties.too_short
    elif result.length > config.max_subject_length:
        result.issues.append("Subject line may get truncated on mobile")
        result.suggestions.append("Keep subject under 50 characters for mobile visibility")
        score -= penalties.too_long
    else:
        result.length_in_range = True

    result.has_personalization = any(p.search(subject) for p in PERSONALIZATION_PATTERNS)
    if not result.has_personalization:
        result.issues.append("No personalization token")
        result.suggestions.append("Consider adding personalization (e.g., {{first_name}})")
        score -= penalties.no_personalization

    result.power_words_found = [w for w in lexicons.power_words if _word_pattern(w).search(subject)]
    result.has_power_words = bool(result.power_words_found)
    if not result.has_power_words:
        result.suggestions.append("Add a power word to increase engagement")
        score -= penalties.no_power_words

    result.has_emoji = bool(EMOJI_PATTERN.search(subject))

    result.all_caps_words = _all_caps_words(subject)
    result.has_all_caps = bool(result.all_caps_words)
    if result.has_all_caps:
        if len(result.all_caps_words) >= 2:
            result.issues.append("Excessive ALL CAPS detected")
            score -= penalties.excessive_all_caps
        else:
            result.issues.append("ALL CAPS word detected")
            score -= penalties.single_all_caps
        result.suggestions.append("Avoid ALL CAPS - it triggers spam filters")

    if FAKE_REPLY_PATTERN.match(subject) and not re.match(r"^re:\s*\{", subject, re.IGNORECASE):
        result.issues.append("Fake reply/forward prefix may hurt deliverability")
        score -= penalties.fake_reply_prefix

    if subject.count("!") > 1:
        result.issues.append("Multiple exclamation marks detected")
        result.suggestions.append("Use at most one exclamation mark")
        score -= penalties.multiple_exclamations
    if subject.count("?") > 1:
        result.issues.append("Multiple question marks detected")
        score -= penalties.multiple_questions

    spam_words = list(find_spam_words(subject, lexicons))
    if spam_words:
        plural = "s" if len(spam_words) > 1 else ""
        result.issues.append(f"Contains spam trigger word{plural}: {', '.join(spam_words)}")
        score -= len(spam_words) * penalties.spam_word

    result.score = _clamp(score)
    return result


def analyze_email(
    subject: str | None,
    body: str | None,
    step: int = 1,
    config: CopyConfig | None = None,
    lexicons: Lexicons = DEFAULT_LEXICONS,
) -> EmailAnalysis:
    """Analyze one sequence step.

    Only step 1 has its subject scored; later steps are threaded replies
    and their overall score is the spam score alone.
    """
    config = config or CopyConfig()
    subject = (subject or "").strip()
    body_text = html_to_text(body)

    spam = analyze_spam(subject if step == 1 else "", body_text, config, lexicons)

    if step != 1:
        return EmailAnalysis(spam=spam, subject=None, overall_score=spam.score, step=step)

    subject_analysis = analyze_subject(subject, config, lexicons)
    overall = _clamp(config.subject_weight * subject_analysis.score + config.spam_weight * spam.score)
    return EmailAnalysis(spam=spam, subject=subject_analysis, overall_score=overall, step=step)


def analyze_sequence(
    sequences: list[CampaignSequence],
    config: CopyConfig | None = None,
    lexicons: Lexicons = DEFAULT_LEXICONS,
) -> list[EmailAnalysis]:
    """Analyze every step of a campaign, ordered by step number."""
    ordered = sorted(sequences, key=lambda s: s.step)
    return [analyze_email(s.subject, s.body, s.step, config, lexicons) for s in ordered]


def detect_spintax(text: str | None) -> SpintaxInfo:
    """Find {a|b|c} spin groups. Informational; never affects a score."""
    info = SpintaxInfo()
    for m in SPINTAX_PATTERN.finditer(text or ""):
        options = [o.strip() for o in m.group(1).split("|")]
        info.groups.append(options)
        info.variants.extend(options)
        info.variant_count *= len(options)
    info.has_spintax = bool(info.groups)
    return info
