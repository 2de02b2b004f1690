"""Test doubles shared across the relay test suite."""
