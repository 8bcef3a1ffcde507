"""Hotels app package.

A hotel is the tenant: rooms, guests and bookings all belong to exactly
one. This app holds the hotel settings the booking core reads, the tenant
scope helpers and the hotel notification log.
"""
