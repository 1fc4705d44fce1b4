"""In-app notifications addressed to a person, a role or everyone."""
