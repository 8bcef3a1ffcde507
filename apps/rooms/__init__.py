"""Rooms app package."""
