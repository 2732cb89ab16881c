"""Command API and state stream for UI collaborators."""
