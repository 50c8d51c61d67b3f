"""OAuth 2.0 device code login."""

import logging
import time
from typing import Callable, Optional

from ..models.credential import AzureCredential, DeviceCodeInfo
from ..models.environment import AzureEnvironment
from ..utils.exceptions import LoginTimeoutError, ProviderError
from .base import TokenAcquirer
from .executor import AcquisitionContext, AuthExecutor
from .token_client import AUTHORIZATION_PENDING

logger = logging.getLogger(__name__)

AUTH_WITH_DEVICE_LOGIN = "Authenticate with Device Login"


class DeviceCodeFlow(TokenAcquirer):
    """Logs the user in by having them approve a code on another device."""

    def __init__(
        self,
        executor: Optional[AuthExecutor] = None,
        sleep: Callable[[float], None] = time.sleep,
        display: Callable[[str], None] = print,
    ):
        self.executor = executor or AuthExecutor(quiet=True)
        self.sleep = sleep
        self.display = display

    def run(self, environment=AzureEnvironment.AZURE) -> AzureCredential:
        """
        Perform a device login.

        Raises:
            ProviderError: If the provider rejected the device code
            LoginTimeoutError: If the code expired before it was approved
        """
        return self.executor.execute(self, environment)

    def acquire(self, context: AcquisitionContext) -> AzureCredential:
        client = context.client
        device_code = client.acquire_device_code()

        self.display(AUTH_WITH_DEVICE_LOGIN)
        self.display("\n" + "=" * 70)
        self.display(device_code.instructions)
        self.display("=" * 70 + "\n")

        return self._poll(context, device_code)

    def _poll(self, context: AcquisitionContext, device_code: DeviceCodeInfo) -> AzureCredential:
        remaining = device_code.expires_in
        interval = max(device_code.interval, 1)
        attempts = 0
        while remaining > 0:
            remaining -= interval
            self.sleep(interval)
            attempts += 1
            try:
                credential = context.client.acquire_token_by_device_code(device_code)
            except ProviderError as e:
                if e.error == AUTHORIZATION_PENDING:
                    continue
                logger.error(f"Device login failed: {e}")
                raise
            logger.info(f"Device login succeeded after {attempts} attempt(s)")
            return credential

        raise LoginTimeoutError(
            "Cannot proceed with device login after waiting for "
            f"{device_code.expires_in // 60} minutes."
        )
