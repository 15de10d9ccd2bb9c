"""Configuration: settings and JSON loaders."""
