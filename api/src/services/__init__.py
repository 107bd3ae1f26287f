"""Business logic services.

This package contains service classes that sit between the HTTP handlers
and the repositories.
"""
