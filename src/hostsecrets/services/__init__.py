"""Host services built on the secrets repository."""

from hostsecrets.services.secret_manager import SecretManager, generate_secret

__all__ = ["SecretManager", "generate_secret"]
