"""Crucible test suite."""
