"""Tenants app package.

Every business row in SlotBook belongs to exactly one tenant (an operator
business). This app owns the tenant and membership models, the per-request
tenant context and the scoping layer that keeps one tenant from reading or
writing another tenant's schedules, bookings and payments.
"""
