"""Reduce per-token outcomes into a delivery report."""

from __future__ import annotations

from collections.abc import Iterable

from vitrix.domain.entities import DeliveryOverall, DeliveryReport, DispatchOutcome


def aggregate_outcomes(
    outcomes: Iterable[DispatchOutcome], requested: int
) -> DeliveryReport:
    """Summarise ``outcomes`` for ``requested`` recipients.

    ``sent`` counts recipients with at least one fulfilled token, so a user
    with two devices is only counted once.
    """

    if isinstance(requested, bool) or not isinstance(requested, int):
        raise TypeError("requested must be an integer")
    if requested < 0:
        raise ValueError("requested must not be negative")

    delivered: set[int] = set()
    for outcome in outcomes:
        if not isinstance(outcome, DispatchOutcome):
            raise TypeError(f"Unexpected dispatch outcome: {outcome!r}")
        if outcome.fulfilled:
            delivered.add(outcome.recipient_id)

    sent = min(len(delivered), requested)
    if sent == 0:
        overall = DeliveryOverall.FAILURE
    elif sent < requested:
        overall = DeliveryOverall.PARTIAL
    else:
        overall = DeliveryOverall.SUCCESS

    return DeliveryReport(
        requested=requested, sent=sent, failed=requested - sent, overall=overall
    )


__all__ = ["aggregate_outcomes"]
