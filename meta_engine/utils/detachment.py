"""
Best-effort detachment extraction from pasted army list text.

Army lists come from several list builders and the layout varies, so a
few common header patterns are tried in order.
"""

import re
from typing import List, Optional


DETACHMENT_PATTERNS: List[re.Pattern] = [
    # "+ DETACHMENT: Gladius Task Force" or "DETACHMENT: Gladius Task Force"
    re.compile(r'^\+?\s*DETACHMENT:\s*(.+)$', re.IGNORECASE | re.MULTILINE),
    # "-- Gladius Task Force Detachment --"
    re.compile(r'^--\s*(.+?)\s*Detachment\s*--$', re.IGNORECASE | re.MULTILINE),
]


def extract_detachment(list_text: str) -> Optional[str]:
    """
    Try to extract the detachment name from army list text.
    
    Args:
        list_text: Raw army list as pasted by the player
        
    Returns:
        Trimmed detachment name, or None if no pattern matches
        
    Examples:
        "+ DETACHMENT: Gladius Task Force" -> "Gladius Task Force"
        "Detachment: Waaagh! Tribe" -> "Waaagh! Tribe"
        "-- Ironstorm Spearhead Detachment --" -> "Ironstorm Spearhead"
    """
    if not list_text:
        return None
    
    for pattern in DETACHMENT_PATTERNS:
        match = pattern.search(list_text)
        if match:
            name = match.group(1).strip()
            if name:
                return name
    
    return None
