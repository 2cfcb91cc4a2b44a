# app/core/validation.py
import re

# 10 ASCII digits, first digit 6-9. [0-9] rather than \d, which also
# matches non-ASCII decimal digits in str patterns.
MOBILE_PATTERN = re.compile(r"[6-9][0-9]{9}")


def is_valid_mobile(value: str | None) -> bool:
    return bool(value) and MOBILE_PATTERN.fullmatch(value) is not None
