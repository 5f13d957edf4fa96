"""One-time passcode generation."""

import secrets

OTP_DIGITS = 6


def generate_otp() -> str:
    """Uniformly random 6-digit code in 100000..999999 (no leading zero)."""
    low = 10 ** (OTP_DIGITS - 1)
    return str(low + secrets.randbelow(9 * low))
