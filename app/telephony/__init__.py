"""Telephony provider implementations"""

from app.telephony.base import TelephonyProvider
from app.telephony.twilio import TwilioTelephonyProvider

__all__ = [
    "TelephonyProvider",
    "TwilioTelephonyProvider",
]
