"""Bookings app package.

This app encapsulates the booking domain: the per-day availability
engine, the Reservation aggregate, booking creation and cancellation,
and the admin status workflow. Capacity is re-validated under row locks
inside the booking transaction so no resource is sold beyond its daily
inventory.
"""
