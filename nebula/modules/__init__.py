"""Functional modules of the particle system."""
