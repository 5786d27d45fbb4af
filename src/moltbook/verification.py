"""Detection of server-issued verification challenges.

A write action may come back with a challenge instead of completing. The
challenge is surfaced to whoever is driving the CLI and the process exits;
``moltbook verify`` submits the answer in a separate invocation.
"""

from __future__ import annotations

from .errors import ApiError, VerificationRequired
from .models import VerificationChallenge


def find_challenge(result) -> VerificationChallenge | None:
    if not isinstance(result, dict):
        return None

    verification = result.get("verification")
    if not isinstance(verification, dict):
        verification = None
        for key in ("post", "comment"):
            inner = result.get(key)
            if isinstance(inner, dict) and isinstance(inner.get("verification"), dict):
                verification = inner["verification"]
                break

    if verification is not None:
        return VerificationChallenge(
            code=str(verification.get("verification_code") or verification.get("code") or ""),
            challenge=str(verification.get("challenge_text") or verification.get("challenge") or ""),
            instructions=str(verification.get("instructions") or ""),
        )
    if result.get("verification_required") is True:
        return VerificationChallenge()
    return None


def check(result, action: str):
    """Raise ``VerificationRequired`` if ``result`` carries a challenge, else return it.

    A response that reports ``success: false`` without a challenge is raised
    as an ``ApiError`` so it is not rendered as a success.
    """
    challenge = find_challenge(result)
    if challenge is not None:
        raise VerificationRequired(challenge, action)
    if isinstance(result, dict) and result.get("success") is False:
        raise ApiError(0, str(result.get("error") or "Unknown error"), str(result.get("hint") or ""))
    return result
