"""Oral exam API service."""
