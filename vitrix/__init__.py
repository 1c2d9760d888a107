"""Vitrix notification service.

Push and email fan-out for coach broadcasts, delivery reporting and
read-receipt tracking.
"""
