"""
Referral system configuration.

Contains constants for the referral hierarchy.
"""

import re

# Two-level program: direct referrer and the referrer's referrer
REFERRAL_DEPTH = 2

# Referral code shape: 3-char prefix + 4 digits, plus an optional retry suffix
REFERRAL_CODE_PREFIX_LENGTH = 3
REFERRAL_CODE_PAD_CHAR = "X"
REFERRAL_CODE_MAX_LENGTH = 20
NON_ALPHANUMERIC = re.compile(r"[^A-Za-z0-9]")
