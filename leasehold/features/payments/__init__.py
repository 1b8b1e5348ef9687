"""Payments feature: lease payment schedules."""
