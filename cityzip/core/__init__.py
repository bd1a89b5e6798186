"""Normalization, extraction, reference store and resolution engine."""
