"""Bookings app package.

This app holds the booking lifecycle: the booking and payment ledger
models, the framework-free domain (status state machine, pricing,
availability, payments), the command handlers and the ``BookingService``
facade. Overlapping stays are prevented by locking the room row while a
booking is created and by version-conditional writes afterwards.
"""
