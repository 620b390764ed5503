"""Verification and registration business logic."""
