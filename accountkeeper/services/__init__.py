"""Services package for accountkeeper."""
