"""Routers exposed by the relay application."""
