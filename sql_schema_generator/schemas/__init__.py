"""Bundled sample schemas."""
