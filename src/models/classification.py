"""Answer classification rules for whitelist zones.

Turns a single parsed answer into a verdict reason, or None when the
answer carries no whitelist signal.
"""

from typing import Optional

from src.models.dns_answer import Answer
from src.utils.ip_utils import strip_ip_prefix


BLOCKED_BY_PREFIX = "Blocked by "


def classify_answer(answer: Answer) -> Optional[str]:
    """Derive a verdict reason from one answer.

    Rules:
    - The first TXT record wins: its payload is the reason, and scanning
      of this answer stops there.
    - Without a TXT record, any A record yields "Blocked by <label>",
      where <label> is the first record name with its leading
      dotted-quad stripped.
    - Anything else yields None.

    Args:
        answer: Parsed answer for one zone.

    Returns:
        Optional[str]: Verdict reason, or None.
    """
    if answer.is_empty():
        return None

    has_a = False
    label = None

    for record in answer.records:
        if label is None:
            label = strip_ip_prefix(record.name)
        if record.is_a():
            has_a = True
        if record.is_txt():
            return record.text if record.text is not None else ""

    if has_a:
        return f"{BLOCKED_BY_PREFIX}{label}"

    return None
