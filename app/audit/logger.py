"""
Audit trail for payment requests.

Every state change of a payment gets one structured log line with:
  - Payment ID (one per inbound request)
  - Action (the state entered, or a notable event)
  - Details (amounts, tx hashes, error kind)

Nothing is persisted; the lines go to the ``signing_service.audit`` logger
and from there to whatever the deployment collects stdout with. Secrets
never appear in details.
"""

import json
import logging
from typing import Any, Optional

logger = logging.getLogger("signing_service.audit")


def log_event(
    action: str,
    payment_id: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
    level: int = logging.INFO,
) -> None:
    """
    Emit an audit log entry.

    Args:
        action: What happened (e.g. "commission_pending", "failed").
        payment_id: The request this event belongs to.
        details: Arbitrary context (serialized to JSON).
        level: Logging level, WARNING/ERROR for failures.
    """
    logger.log(
        level,
        "AUDIT | payment=%s action=%s | %s",
        payment_id or "-",
        action,
        json.dumps(details, default=str) if details else "",
    )
