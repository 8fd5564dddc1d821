"""Clients for external services (feeds, generative text)."""
