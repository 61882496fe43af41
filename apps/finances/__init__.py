"""Finances app package.

This app contains the payment ledger: append-only payment, deposit and
refund rows per booking, the pure projection that derives a booking's
money state from them, and the gateway seam through which payment
attempts are settled.
"""
