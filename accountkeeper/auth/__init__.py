"""Auth package for accountkeeper."""
