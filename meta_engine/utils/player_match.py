"""
Resolve imported player name strings to platform accounts.

Matching order:
    1. Exact match on username (case-insensitive)
    2. Exact match on display username (case-insensitive)
    3. SequenceMatcher similarity against both, best score at or above
       the configured threshold
    4. No match -> None (the rating entry stays anonymous)

Only used when a name has no rating entry yet. Admins can correct a
wrong or missing link afterwards with link_player.
"""

import difflib
from dataclasses import dataclass
from typing import Optional, Sequence

from meta_engine.config import Config


@dataclass(frozen=True)
class AccountCandidate:
    """A platform account that an imported name may belong to."""
    user_id: str
    username: Optional[str]
    display_username: Optional[str]


@dataclass(frozen=True)
class AccountMatch:
    """Result of matching one name against the account directory."""
    user_id: Optional[str]
    confidence: float  # 0.0 to 1.0
    method: str  # "username", "display_username", "fuzzy", "unmatched"


def _normalize(name: Optional[str]) -> str:
    return ' '.join((name or '').split()).lower()


def match_account(
    name: str,
    accounts: Sequence[AccountCandidate],
    threshold: Optional[float] = None
) -> AccountMatch:
    """
    Match an imported name to a platform account.
    
    Args:
        name: Free-text player name from an import
        accounts: Known platform accounts
        threshold: Minimum fuzzy ratio (defaults to config)
        
    Returns:
        AccountMatch with the matched user id, or user_id None when unmatched
    """
    if threshold is None:
        threshold = Config.ACCOUNT_MATCH_THRESHOLD
    
    normalized = _normalize(name)
    if not normalized:
        return AccountMatch(None, 0.0, "unmatched")
    
    for account in accounts:
        if account.username and _normalize(account.username) == normalized:
            return AccountMatch(account.user_id, 1.0, "username")
    for account in accounts:
        if account.display_username and _normalize(account.display_username) == normalized:
            return AccountMatch(account.user_id, 1.0, "display_username")
    
    best_score = 0.0
    best_id = None
    for account in accounts:
        for known in (account.username, account.display_username):
            if not known:
                continue
            score = difflib.SequenceMatcher(None, normalized, _normalize(known)).ratio()
            if score > best_score:
                best_score = score
                best_id = account.user_id
    
    if best_id and best_score >= threshold:
        return AccountMatch(best_id, best_score, "fuzzy")
    return AccountMatch(None, best_score, "unmatched")
