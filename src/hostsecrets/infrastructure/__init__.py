"""
Infrastructure layer for host secrets.

This module provides:
- Key-name codec between stored pairs and typed keys
- Sentinel notifier for cross-instance invalidation
- Backing store interface and implementations
- The secrets repository composing them

Supports multiple backing stores via factory pattern:
- local: JSON files for development
- aws: AWS Secrets Manager
- kubernetes: cluster Secret objects (read-only)
"""

from hostsecrets.infrastructure.factory import InfrastructureFactory

__all__ = ["InfrastructureFactory"]
