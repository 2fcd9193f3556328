"""Bearer token verification for requesting identities."""
