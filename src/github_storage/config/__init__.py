"""
Configuration management for the GitHub storage adapter.

Resolves caller-supplied settings against GHOST_STORAGE_GITHUB_* environment
overrides into one immutable StorageConfig.
"""
