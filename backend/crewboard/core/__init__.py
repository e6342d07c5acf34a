"""Core configuration, auth, logging and error-handling primitives."""
