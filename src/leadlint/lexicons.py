"""Word and domain lists used by the classifiers, with YAML overrides."""

from __future__ import annotations

from dataclasses import dataclass

import yaml

DISPOSABLE_DOMAINS = frozenset({
    "tempmail.com", "temp-mail.org", "guerrillamail.com", "guerrillamail.org",
    "mailinator.com", "throwaway.email", "10minutemail.com", "fakeinbox.com",
    "trashmail.com", "tempail.com", "tempmailaddress.com", "tmpmail.org",
    "getnada.com", "mohmal.com", "dispostable.com", "mailnesia.com",
    "maildrop.cc", "yopmail.com", "sharklasers.com", "spam4.me",
    "grr.la", "guerrillamailblock.com", "pokemail.net", "getairmail.com",
    "discard.email", "spamgourmet.com", "mytrashmail.com", "mailcatch.com",
    "trashmail.net", "mailforspam.com", "spambox.us", "tempr.email",
    "fakemail.net", "throwawaymail.com", "mailsac.com", "burnermail.io",
    "tempinbox.com", "emailondeck.com", "mintemail.com", "tempmailo.com",
})

GENERIC_PREFIXES = frozenset({
    "info", "contact", "hello", "support", "sales", "admin", "help",
    "office", "team", "service", "enquiry", "enquiries", "marketing",
    "noreply", "no-reply", "donotreply", "webmaster", "postmaster",
    "hostmaster", "abuse", "spam", "mail", "email", "general",
    "reception", "billing", "accounts", "orders", "jobs", "careers",
    "hr", "press", "media", "feedback", "customerservice",
})

FREE_EMAIL_PROVIDERS = frozenset({
    "gmail.com", "yahoo.com", "hotmail.com", "outlook.com", "aol.com",
    "icloud.com", "me.com", "mac.com", "live.com", "msn.com",
    "protonmail.com", "proton.me", "zoho.com", "mail.com", "gmx.com",
    "yandex.com", "fastmail.com", "tutanota.com", "hushmail.com",
})

SPAM_WORDS = (
    "free", "guarantee", "act now", "limited time", "urgent", "winner",
    "congratulations", "click here", "buy now", "order now", "special offer",
    "risk free", "no obligation", "cash", "money", "earn money", "make money",
    "income", "profit", "credit card", "discount", "save big", "lowest price",
    "100%", "amazing", "incredible", "unbelievable", "miracle", "exclusive deal",
    "double your", "million dollars", "opportunity", "no cost", "apply now",
    "call now", "don't delete", "don't miss", "exclusive offer", "for free",
    "great offer", "increase sales", "limited offer", "money back", "no catch",
    "no fees", "no gimmick", "no strings attached", "offer expires",
    "once in a lifetime", "order today", "promise you", "risk-free",
    "satisfaction guaranteed", "special promotion", "take action",
    "this isn't spam", "you have been selected", "you're a winner",
)

POWER_WORDS = (
    "discover", "secret", "proven", "results", "exclusive", "insider",
    "breakthrough", "unlock", "revealed", "transform", "boost", "accelerate",
    "maximize", "optimize", "essential", "critical", "important", "quick",
    "easy", "simple", "powerful", "effective", "successful", "strategy",
    "growth", "scale", "leverage", "opportunity", "insight", "trend",
)


@dataclass
class Lexicons:
    disposable_domains: frozenset[str] = DISPOSABLE_DOMAINS
    generic_prefixes: frozenset[str] = GENERIC_PREFIXES
    free_providers: frozenset[str] = FREE_EMAIL_PROVIDERS
    spam_words: tuple[str, ...] = SPAM_WORDS
    power_words: tuple[str, ...] = POWER_WORDS


DEFAULT_LEXICONS = Lexicons()


def _clean_list(values) -> list[str]:
    if not isinstance(values, list):
        return []
    return [str(v).strip().lower() for v in values if str(v).strip()]


def load_lexicons(path: str | None = None) -> Lexicons:
    """Load lexicon overrides from a YAML file on top of the built-in lists.

    Each top-level key may hold a list (extends the built-in list) or a
    mapping with ``replace: true`` and ``words: [...]`` (replaces it).
    Gracefully returns the defaults if the file is not found.
    """
    if path is None:
        path = "lexicons.yaml"

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        return DEFAULT_LEXICONS

    def resolve(key: str, base):
        entry = data.get(key)
        if entry is None:
            return list(base)
        if isinstance(entry, dict):
            words = _clean_list(entry.get("words"))
            if entry.get("replace"):
                return words
            return list(base) + [w for w in words if w not in base]
        return list(base) + [w for w in _clean_list(entry) if w not in base]

    return Lexicons(
        disposable_domains=frozenset(resolve("disposable_domains", DISPOSABLE_DOMAINS)),
        generic_prefixes=frozenset(resolve("generic_prefixes", GENERIC_PREFIXES)),
        free_providers=frozenset(resolve("free_providers", FREE_EMAIL_PROVIDERS)),
        spam_words=tuple(resolve("spam_words", SPAM_WORDS)),
        power_words=tuple(resolve("power_words", POWER_WORDS)),
    )
