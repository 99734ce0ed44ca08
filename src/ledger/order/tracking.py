"""Carrier tracking links derived from the shape of a tracking number.

Precedence matters: a USPS international number like ``EC123456789US``
is checked before the UPS ``1Z`` prefix and the 12-digit FedEx form.
Anything unrecognised falls back to USPS.
"""

import re
from enum import Enum


class Carrier(Enum):
    USPS = "USPS"
    UPS = "UPS"
    FEDEX = "FedEx"


_USPS_PATTERN = re.compile(r"^\d+[A-Z]{2}\d+US$")
_FEDEX_PATTERN = re.compile(r"^\d{12}$")

_TRACKING_URLS = {
    Carrier.USPS: "https://tools.usps.com/go/TrackConfirmAction?tLabels={number}",
    Carrier.UPS: "https://www.ups.com/track?tracknum={number}",
    Carrier.FEDEX: "https://www.fedex.com/fedextrack/?trknbr={number}",
}


def normalize_tracking_number(tracking_number: str | None) -> str:
    return (tracking_number or "").strip().upper()


def detect_carrier(tracking_number: str | None) -> Carrier | None:
    """Return the carrier for a tracking number, or None when it is blank."""
    number = normalize_tracking_number(tracking_number)
    if not number:
        return None

    if _USPS_PATTERN.match(number):
        return Carrier.USPS
    if number.startswith("1Z"):
        return Carrier.UPS
    if _FEDEX_PATTERN.match(number):
        return Carrier.FEDEX
    return Carrier.USPS


def tracking_url(tracking_number: str | None) -> str | None:
    """Carrier tracking page for ``tracking_number``; None when blank."""
    carrier = detect_carrier(tracking_number)
    if carrier is None:
        return None
    return _TRACKING_URLS[carrier].format(number=normalize_tracking_number(tracking_number))
