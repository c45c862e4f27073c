"""Persistence adapters and external client setup."""
