def strip_text(value):
    # non-strings fall through to pydantic's own type check
    if not isinstance(value, str):
        return value
    stripped = value.strip()
    return stripped or None


def normalize_email(value):
    stripped = strip_text(value)
    return stripped.lower() if isinstance(stripped, str) else stripped
