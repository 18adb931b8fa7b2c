"""Configuration package for the AURA forensic service."""
