"""Authentication: identities, role ordering, sessions, and the access gate."""
