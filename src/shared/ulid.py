"""Identifier helpers.

Primary keys are ULIDs: 26 characters that sort by creation time.
"""

import ulid

ULID_LENGTH = 26


def generate_ulid() -> str:
    return str(ulid.new())
