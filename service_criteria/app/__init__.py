"""Criteria service application."""
