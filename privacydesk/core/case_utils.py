# privacydesk/core/case_utils.py
"""
Utilities for case management including case number generation
"""
from datetime import datetime, timezone
from typing import Optional
import re
import secrets
import string

BASE36_ALPHABET = string.digits + string.ascii_uppercase
CASE_NUMBER_PATTERN = re.compile(r"^DSAR-\d{4}-[0-9A-Z]{6}$")


class CaseNumberGenerator:
    """Generate case numbers of the form DSAR-<year>-<6 base36 chars>"""

    PREFIX = "DSAR"
    SUFFIX_LENGTH = 6

    @classmethod
    def generate_case_number(cls, timestamp: Optional[datetime] = None) -> str:
        """
        Generate a case number.
        Example: DSAR-2026-K3Z9Q1

        Args:
            timestamp: Optional timestamp whose year is used (defaults to now)

        Returns:
            Case number string; uniqueness per tenant is checked by the caller
        """
        if not timestamp:
            timestamp = datetime.now(timezone.utc)

        suffix = ''.join(secrets.choice(BASE36_ALPHABET) for _ in range(cls.SUFFIX_LENGTH))
        return f"{cls.PREFIX}-{timestamp.year:04d}-{suffix}"

    @staticmethod
    def is_valid_case_number(case_number: str) -> bool:
        return bool(CASE_NUMBER_PATTERN.match(case_number or ""))
