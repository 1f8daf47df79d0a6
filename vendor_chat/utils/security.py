"""Security helpers: PII masking for safe logging of user utterances."""
import re

PHONE_RE = re.compile(r"\+?\d[\d\s-]{8,}\d")
EMAIL_RE = re.compile(r"[\w.+-]+@[\w-]+\.[\w.-]+")


def mask_pii(text: str) -> str:
    if not text:
        return ""
    masked = EMAIL_RE.sub("[EMAIL]", text)
    masked = PHONE_RE.sub("[REDACTED]", masked)
    return masked


def preview(text: str, limit: int = 80) -> str:
    """Masked, single-line preview of a message for log lines."""
    masked = mask_pii(text).replace("\n", " ")
    return masked if len(masked) <= limit else masked[:limit] + "..."
