"""wavelane verification tools."""

from wavelane.verification.suite import (
    VerificationReport,
    VerificationResult,
    VerificationSuite,
)

__all__ = [
    "VerificationSuite",
    "VerificationResult",
    "VerificationReport",
]
