"""JWT tokens, password hashing and request authentication dependencies."""
