"""Audit app package.

Records who changed what on a booking. Recording never fails the business
operation it describes; a sink failure is logged and swallowed.
"""
