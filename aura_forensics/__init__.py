"""AURA Forensic Service - non-decisional evidence consistency analysis."""

__version__ = "3.1.0"
