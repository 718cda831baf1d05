"""
Status-change notifications.

The messaging collaborator only needs to hear about transitions; it never
takes part in aggregation. Listeners are plain callables registered on the
QuoteAggregator.
"""

import logging

from . import models
from .models import QuoteStatus

logger = logging.getLogger(__name__)

# Transitions the homeowner and the contractor both care about
NOTIFIED_STATUSES = (QuoteStatus.PENDING, QuoteStatus.APPROVED, QuoteStatus.REJECTED, QuoteStatus.EXPIRED)


def build_status_message(quote: models.Quote, new_status: QuoteStatus) -> str:
    if new_status == QuoteStatus.APPROVED:
        return f"Quote '{quote.title}' was approved ({quote.total_amount:.2f})."
    if new_status == QuoteStatus.REJECTED:
        reason = f": {quote.rejection_reason}" if quote.rejection_reason else ""
        return f"Quote '{quote.title}' was rejected{reason}."
    if new_status == QuoteStatus.EXPIRED:
        return f"Quote '{quote.title}' has expired."
    return f"Quote '{quote.title}' is ready for review."


class StatusNotifier:
    """Collects outgoing messages; the transport that delivers them lives elsewhere."""

    def __init__(self):
        self.outbox = []

    def __call__(self, quote: models.Quote, old_status: QuoteStatus, new_status: QuoteStatus):
        if new_status not in NOTIFIED_STATUSES:
            return
        message = {
            "quote_id": quote.id,
            "owner_id": quote.owner_id,
            "from": old_status.value,
            "to": new_status.value,
            "message": build_status_message(quote, new_status),
        }
        self.outbox.append(message)
        logger.info(f"Notify owner {quote.owner_id}: {message['message']}")


notifier = StatusNotifier()
