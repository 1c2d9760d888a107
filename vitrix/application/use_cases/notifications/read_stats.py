"""Read counters for a broadcast message."""

from vitrix.domain.entities import GroupMessage, ReadStats


def summarize_read_receipts(message: GroupMessage) -> ReadStats:
    receipts = message.read_receipts
    total = message.total_recipients or len(receipts)
    read = sum(1 for receipt in receipts if receipt.is_read)
    return ReadStats(
        read=read,
        unread=max(total - read, 0),
        notification_opened=sum(1 for r in receipts if r.notification_opened),
        email_opened=sum(1 for r in receipts if r.email_opened),
        total_recipients=total,
    )


__all__ = ["summarize_read_receipts"]
