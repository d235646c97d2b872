"""Database package for accountkeeper."""
