"""
Adapter layer for the GitHub storage backend.

Contains the contents API client and its retry and rate-limit policies.
"""
