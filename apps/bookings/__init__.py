"""Bookings app package.

Reservations of lofts, short-lived reservation locks taken during
checkout, and the availability domain that decides whether a loft can be
booked. Reservation creation runs in a database transaction and locks the
overlapping rows where the backend supports it.
"""
