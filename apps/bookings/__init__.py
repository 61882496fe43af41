"""Bookings app package.

This app encapsulates the booking domain: the booking model and its
transition table, the capacity allocator that reserves room on a schedule
instance, and the consistency coordinator through which API views and
Celery tasks run every booking and payment use case. Capacity is checked
and consumed under a schedule row lock in the same transaction that
inserts or cancels the booking.
"""
