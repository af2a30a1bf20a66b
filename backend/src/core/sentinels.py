"""
Sentinel for record fields an update leaves untouched.

image_url is the only field an update does not reset when it is omitted, so
callers need to tell "not sent" (MISSING) apart from an explicit None, which
removes the photo.
"""

import enum


class Missing(enum.Enum):
    MISSING = "MISSING"

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = Missing.MISSING
