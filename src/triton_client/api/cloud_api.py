"""
Entry point of the client: configuration, connections and resource accessors.
"""

from typing import Optional

from ..core.config import CloudApiConfig
from ..core.connection import ConnectionContext, ConnectionFactory
from ..core.env_config import load_from_env
from ..core.http_client import CloudApiHttpClient
from ..core.logging import CloudApiLogger
from .images import Images
from .instances import Instances
from .packages import Packages


class CloudApi:
    """
    Client for Triton CloudAPI.

    Args:
        config: Client configuration. None reads it from the environment
            (TRITON_* / SDC_* variables and an optional .env file).

    Examples:
        >>> with CloudApi(CloudApiConfig.create(account="alice", key_id="...", key_path="~/.ssh/id_rsa")) as api:
        ...     with api.create_connection_context() as context:
        ...         page = api.instances.list(context=context)
        ...         smallest = api.packages.smallest_memory(context=context)
    """

    def __init__(self, config: Optional[CloudApiConfig] = None):
        self.config = config if config is not None else load_from_env()

        if self.config.logging is not None:
            self.logger = CloudApiLogger(self.config.logging)
        else:
            self.logger = CloudApiLogger()

        self.connection_factory = ConnectionFactory(self.config)
        self.http_client = CloudApiHttpClient.from_config(self.config)

        self.instances = Instances(self)
        self.images = Images(self)
        self.packages = Packages(self)

        self.logger.debug(
            "CloudApi initialized",
            url=self.config.url,
            account=self.config.account,
            signing=self.config.signing_enabled
        )

    def create_connection_context(self, correlation_id: Optional[str] = None) -> ConnectionContext:
        """
        Acquire a connection context. The caller must close it (or use `with`).

        Reusing one context across several calls keeps a single
        connection pool and correlation id for all of them.
        """
        return self.connection_factory.create_context(correlation_id=correlation_id)

    def close(self) -> None:
        """Release logging handlers installed by this client."""
        self.logger.close()

    def __enter__(self) -> "CloudApi":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __repr__(self) -> str:
        return f"CloudApi(url={self.config.url!r}, account={self.config.account!r})"
