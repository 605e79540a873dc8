"""KEAM Prep backend."""
