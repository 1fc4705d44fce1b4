"""Authentication: bearer JWT verification and role guards."""
