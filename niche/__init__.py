"""Niche loyalty rewards."""
