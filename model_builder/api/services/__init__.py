"""Helpers behind the routers that are not persistence."""
