"""Sample entity package scanned by discovery and startup tests."""
