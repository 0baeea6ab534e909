"""jsondb core package."""
