"""Utility helpers: errors, datetime windows, member codes, db decorators."""
