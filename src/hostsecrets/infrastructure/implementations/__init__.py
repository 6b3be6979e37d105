"""Backing secret store implementations (local, aws, kubernetes)."""
