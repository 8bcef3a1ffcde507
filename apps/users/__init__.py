"""Users package.

Holds the authorization model used by every booking operation: the role
enumeration, the permission table and the ``Principal`` value handed in by
the request layer. Identity storage, password hashing and token issuance
live outside this project.
"""
