"""Poster pipeline services."""
