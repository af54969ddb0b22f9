"""
Shared Field Types

Annotated Pydantic types reused by the request schemas of several modules.
"""

from typing import Annotated

from pydantic import AfterValidator, StringConstraints

# Ten-digit Indian mobile number
PHONE_PATTERN = r"^[6-9]\d{9}$"

Phone = Annotated[str, StringConstraints(strip_whitespace=True, pattern=PHONE_PATTERN)]

PersonName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=200)]


def _require_http_url(value: str) -> str:
    if not value.startswith(("http://", "https://")):
        raise ValueError("must be an http(s) URL")
    return value


HttpUrlString = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=1000),
    AfterValidator(_require_http_url),
]
