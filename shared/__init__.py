"""
Shared kernel of the booking core.

Domain base classes, value objects and typed errors live in ``domain``;
the unit of work and the message bus live in ``application``.
"""
