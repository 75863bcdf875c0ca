# relay/core/tokens.py

import re

TOKEN_LENGTH = 16

# [0-9] rather than \d: \d also matches non-ASCII digits
_TOKEN_RE = re.compile(r"[0-9]{16}")


def is_valid_token(token) -> bool:
    """A participant token is exactly 16 ASCII decimal digits"""
    return isinstance(token, str) and _TOKEN_RE.fullmatch(token) is not None
