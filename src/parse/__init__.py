"""Parsing utilities for typetrack."""

from parse.declarations import extract_declarations, primary_declaration

__all__ = ["extract_declarations", "primary_declaration"]
