from __future__ import annotations

import re
import secrets

# Sibling services store their documents under 12-byte object ids rendered as hex.
_OBJECT_ID_RE = re.compile(r"[0-9a-fA-F]{24}")


def is_valid_object_id(value: object) -> bool:
    return isinstance(value, str) and bool(_OBJECT_ID_RE.fullmatch(value))


def new_object_id() -> str:
    return secrets.token_hex(12)
