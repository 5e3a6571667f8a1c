"""Audit app package.

Append-only change log of lofts, pricing rules, blocked periods,
reservations and partner profiles, written from model signals.
"""
