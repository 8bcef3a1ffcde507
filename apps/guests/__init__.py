"""Guests app package."""
