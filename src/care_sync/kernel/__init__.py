"""Kernel – result type, error hierarchy, query keys and identifiers."""
