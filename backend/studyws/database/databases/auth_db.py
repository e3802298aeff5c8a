"""
Auth database configuration.
Stores user identity, refresh-token sessions and id sequences.
"""

DB_NAME = "auth_db"


class Collections:
    """Collection names in auth_db."""
    USERS = "users"
    SESSIONS = "sessions"
    COUNTERS = "counters"


class Sequences:
    """Counter document ids used to allocate numeric primary keys."""
    USERS = "users"
    SESSIONS = "sessions"
