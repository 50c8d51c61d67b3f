"""Abstract base classes for token acquisition and token credentials."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

from ..models.credential import AzureCredential

if TYPE_CHECKING:
    from .executor import AcquisitionContext


class TokenAcquirer(ABC):
    """One way of obtaining a fresh credential from the identity provider."""

    @abstractmethod
    def acquire(self, context: "AcquisitionContext") -> AzureCredential:
        """
        Acquire a credential.

        Args:
            context: Environment and token endpoint client for this attempt

        Returns:
            A credential with a non-empty access token

        Raises:
            LoginFailureError: If acquisition fails
        """


class TokenCredential(ABC):
    """A source of bearer tokens, as handed to API consumers."""

    auth_method: str = "unknown"

    @abstractmethod
    def get_token(self, resource: Optional[str] = None) -> str:
        """
        Get a valid access token.

        Args:
            resource: Resource the token is for (defaults to the management endpoint)

        Returns:
            Access token string

        Raises:
            LoginFailureError: If a token cannot be obtained
        """

    @property
    @abstractmethod
    def environment(self) -> str:
        """Short name of the cloud this credential belongs to."""

    @property
    def default_subscription(self) -> Optional[str]:
        return None
