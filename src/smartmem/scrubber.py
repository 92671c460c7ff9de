"""Secret scrubbing for memory content.

Credential-shaped substrings are removed from text before anything is
persisted to the memory backend. Rules are applied as sequential passes in
a fixed order, so when two rules could match overlapping text the earlier
rule wins regardless of match length.
"""

import re

REDACTION_MARKER = "[REDACTED]"

# Order matters - earlier rules claim overlapping text first
SECRET_PATTERNS: list[re.Pattern[str]] = [
    # key/token/password assignment idioms
    re.compile(
        r"(?:api[_-]?key|apikey|secret|token|password|credential|auth)"
        r"[\s]*[=:]\s*[\"']?[A-Za-z0-9_\-]{16,}[\"']?",
        re.IGNORECASE,
    ),
    # OpenAI-style keys
    re.compile(r"sk-[A-Za-z0-9]{20,}"),
    # GitHub classic and fine-grained tokens
    re.compile(r"ghp_[A-Za-z0-9]{36,}"),
    re.compile(r"github_pat_[A-Za-z0-9_]{22,}"),
    # Slack bot tokens
    re.compile(r"xoxb-[A-Za-z0-9\-]{50,}"),
    # PEM private key headers
    re.compile(r"-----BEGIN (?:RSA |EC |DSA )?PRIVATE KEY-----"),
    # Bearer auth headers
    re.compile(r"Bearer\s+[A-Za-z0-9\-._~+/]+=*", re.IGNORECASE),
    # AWS access key ids
    re.compile(r"AKIA[A-Z0-9]{16}"),
    # JWTs
    re.compile(r"eyJ[A-Za-z0-9_-]*\.eyJ[A-Za-z0-9_-]*\.[A-Za-z0-9_-]*"),
]


def scrub_secrets(text: str) -> str:
    """Replace every credential-shaped substring with the redaction marker.

    Args:
        text: Text to scrub

    Returns:
        Scrubbed text. Applying this function again yields the same text.

    Example:
        >>> scrub_secrets("token=abcd1234efgh5678ijkl")
        '[REDACTED]'
    """
    scrubbed = text
    for pattern in SECRET_PATTERNS:
        scrubbed = pattern.sub(REDACTION_MARKER, scrubbed)
    return scrubbed


def is_fully_redacted(text: str) -> bool:
    """Check whether scrubbing leaves nothing but the redaction marker."""
    return scrub_secrets(text).strip() == REDACTION_MARKER
