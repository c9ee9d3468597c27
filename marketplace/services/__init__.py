"""Clients for services the marketplace depends on."""
