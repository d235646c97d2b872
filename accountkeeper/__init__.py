"""accountkeeper: user account service."""
