"""Outward-facing services: identity provider client and user administration."""
