"""Helpers without any class declaration."""


def describe(key: str) -> str:
    return f"item:{key}"
