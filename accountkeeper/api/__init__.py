"""Api package for accountkeeper."""
