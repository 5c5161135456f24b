"""Application layer - request level use cases."""
