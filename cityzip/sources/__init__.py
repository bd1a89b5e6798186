"""Postal code reference data providers."""
