"""Fixture package for rename tracking."""
