"""Lofts Bounded Context.

Lofts offered for short-term rental, their pricing rules and blocked
periods, and the pure pricing domain.
"""
