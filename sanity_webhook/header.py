"""Parse the sanity-webhook-signature header."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from sanity_webhook.errors import MissingHeaderError

SIGNATURE_HEADER = "sanity-webhook-signature"
SIGNATURE_PATTERN = re.compile(r"t=(\d{1,20})[,\s]v1=(\S+)")


@dataclass(frozen=True)
class SignatureHeader:
    """Timestamp (ms since epoch) and hash token presented by the sender."""

    timestamp: int
    hash: str


def parse_signature_header(values: Sequence[str]) -> SignatureHeader:
    """Parse the only occurrence of the signature header.

    Zero or repeated occurrences are treated as a missing header.
    """
    if len(values) != 1:
        raise MissingHeaderError()
    match = SIGNATURE_PATTERN.fullmatch(values[0].strip())
    if match is None:
        raise MissingHeaderError()
    timestamp, token = (group.strip() for group in match.groups())
    return SignatureHeader(timestamp=int(timestamp), hash=token)
