# relay/core/padding.py

import base64
import os
import secrets

MIN_PADDING_BYTES = 100
MAX_PADDING_BYTES = 600  # exclusive


def generate_padding() -> str:
    """
    Random noise stored next to each envelope so persisted row sizes
    do not track message sizes. Length is uniform in [100, 600) bytes.
    """
    size = MIN_PADDING_BYTES + secrets.randbelow(MAX_PADDING_BYTES - MIN_PADDING_BYTES)
    return base64.b64encode(os.urandom(size)).decode("ascii")
