"""Reusable test doubles and fixtures."""
