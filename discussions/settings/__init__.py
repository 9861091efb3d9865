"""Discussions settings."""
