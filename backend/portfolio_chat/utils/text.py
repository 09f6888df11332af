import re

# Only the first directive is acted on; every directive is stripped from display text.
SHOW_PROJECT_PATTERN = re.compile(r"\[SHOW_PROJECT:([A-Za-z0-9_]+)\]")


def sanitize_session_id(raw: str, max_length: int = 50, default: str = "default") -> str:
    """Keep only ASCII letters, digits, ``_`` and ``-``, capped at max_length."""
    clean = re.sub(r"[^a-zA-Z0-9_-]", "", raw)[:max_length]
    return clean or default


def extract_show_project(reply: str) -> tuple[str, str | None]:
    """Split a model reply into (visible text, project key or None)."""
    match = SHOW_PROJECT_PATTERN.search(reply)
    project_key = match.group(1) if match else None
    clean = SHOW_PROJECT_PATTERN.sub("", reply).strip()
    return clean, project_key
