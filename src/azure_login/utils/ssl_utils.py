"""SSL certificate handling utilities.

Token requests go to the Azure Active Directory login endpoints over HTTPS. On
Windows and macOS, Python's bundled certificates often miss corporate CA
certificates installed in the OS store, so sign-in fails behind TLS-inspecting
proxies. The truststore package injects the OS's native certificate store into
Python's SSL context.
"""

import logging
import platform

logger = logging.getLogger(__name__)

_ssl_initialized = False


def setup_ssl_truststore() -> bool:
    """
    Configure SSL to use the OS native certificate store.

    Returns:
        True if truststore was successfully injected, False otherwise.
    """
    global _ssl_initialized

    if _ssl_initialized:
        return True

    try:
        import truststore
        truststore.inject_into_ssl()
        _ssl_initialized = True
        logger.debug(f"SSL truststore injected for {platform.system()}")
        return True
    except ImportError:
        logger.warning(
            "truststore package not installed. "
            "If you encounter SSL certificate errors, install it with: pip install truststore"
        )
        return False
    except Exception as e:
        logger.warning(f"Failed to inject truststore: {e}")
        return False


def init_ssl() -> bool:
    """
    Initialize SSL handling for the current platform.

    Call this before the first token request is made.
    """
    logger.debug(f"{platform.system()} detected, setting up SSL truststore...")
    return setup_ssl_truststore()
