"""Schedules app package.

A schedule instance is one dated occurrence of an offering (a trip, a
class) with a static capacity ceiling. Catalog operations own the ceiling;
the booking engine only consumes it, deriving the booked count from active
bookings while holding the schedule row lock.
"""
