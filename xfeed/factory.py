"""
Factory for creating X API client instances with proper initialization.
"""

from __future__ import annotations

from typing import Callable

import tweepy

from xfeed.clients.tweepy_client import TweepyClient
from xfeed.config import ConfigManager, XFeedCredentials
from xfeed.exceptions import ConfigurationError


class XFeedClientFactory:
    """Factory for creating properly initialized X API clients."""

    @staticmethod
    def create_from_config(
        config_manager: ConfigManager,
        *,
        on_session_expired: Callable[[], None] | None = None,
    ) -> TweepyClient:
        """
        Create a TweepyClient from the credentials the config manager resolves.

        Raises:
            ConfigurationError: If credentials are missing or incomplete
        """
        credentials = config_manager.load_credentials()
        return XFeedClientFactory.create_from_credentials(
            credentials, on_session_expired=on_session_expired
        )

    @staticmethod
    def create_from_credentials(
        credentials: XFeedCredentials,
        *,
        on_session_expired: Callable[[], None] | None = None,
    ) -> TweepyClient:
        """
        Create a TweepyClient directly from credentials.

        OAuth 1.0a user tokens are preferred; a bearer token alone (an OAuth 2.0
        user token) is accepted and used for every request.

        Raises:
            ConfigurationError: If neither credential set is complete
        """
        if credentials.has_oauth1():
            client = tweepy.Client(
                bearer_token=credentials.bearer_token,
                consumer_key=credentials.api_key,
                consumer_secret=credentials.api_secret,
                access_token=credentials.access_token,
                access_token_secret=credentials.access_token_secret,
            )
            return TweepyClient(client, user_auth=True, on_session_expired=on_session_expired)

        if credentials.bearer_token:
            client = tweepy.Client(bearer_token=credentials.bearer_token)
            return TweepyClient(client, user_auth=False, on_session_expired=on_session_expired)

        if credentials.api_key or credentials.api_secret:
            raise ConfigurationError("Access token and secret are required")
        raise ConfigurationError("API key and secret, or a bearer token, are required")
