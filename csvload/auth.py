"""Bearer token acquisition and periodic refresh."""

import asyncio
import logging
from typing import Dict, Optional

import aiohttp

from .config import LoaderConfig
from .errors import AuthenticationError


class TokenProvider:
    """Holds the current bearer token.

    The token is replaced in place by the refresher; callers read it at
    request time and must not keep their own copy.
    """

    def __init__(self, token: Optional[str] = None):
        self._token = token

    @property
    def token(self) -> Optional[str]:
        return self._token

    def set_token(self, token: str) -> None:
        self._token = token

    def authorization_header(self) -> Dict[str, str]:
        """Build the Authorization header for the current token."""
        if not self._token:
            return {}
        return {"Authorization": f"Bearer {self._token}"}


class Authenticator:
    """OAuth2 client-credentials authenticator."""

    def __init__(
        self,
        config: LoaderConfig,
        token_provider: TokenProvider,
        session: Optional[aiohttp.ClientSession] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize authenticator.

        Args:
            config: Loader configuration with token endpoint and credentials
            token_provider: Provider updated with each new token
            session: Optional shared aiohttp session
            logger: Optional logger instance
        """
        self.config = config
        self.token_provider = token_provider
        self.session = session
        self.logger = logger or logging.getLogger(__name__)

    async def authenticate(self) -> str:
        """Request a new access token and store it in the provider.

        Returns:
            The new access token

        Raises:
            AuthenticationError: If the token endpoint fails or returns no token
        """
        form = {
            "grant_type": "client_credentials",
            "client_id": self.config.auth_client_id,
            "client_secret": self.config.auth_client_secret,
            "scope": self.config.auth_scope or "",
        }

        if self.session is not None:
            token = await self._request_token(self.session, form)
        else:
            timeout = aiohttp.ClientTimeout(total=self.config.request_timeout)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                token = await self._request_token(session, form)

        self.token_provider.set_token(token)
        return token

    async def _request_token(self, session: aiohttp.ClientSession, form: Dict[str, str]) -> str:
        url = self.config.auth_url
        try:
            # aiohttp form-encodes dict bodies passed as ``data``
            async with session.post(url, data=form) as response:
                if response.status >= 400:
                    body = await response.text()
                    raise AuthenticationError(
                        f"Token request failed with status {response.status}",
                        url=url,
                        status=response.status,
                        body=body,
                    )
                payload = await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise AuthenticationError(f"Token request to {url} failed: {e}", url=url)
        except asyncio.TimeoutError:
            raise AuthenticationError(f"Token request to {url} timed out", url=url)
        except ValueError as e:
            raise AuthenticationError(f"Token response is not JSON: {e}", url=url)

        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not token:
            raise AuthenticationError("Token response has no access_token", url=url, body=payload)
        return token

    async def refresh_forever(self, interval: float) -> None:
        """Re-authenticate every ``interval`` seconds until cancelled.

        A failed refresh is logged and the previous token stays in use.
        """
        while True:
            await asyncio.sleep(interval)
            self.logger.info("Refreshing authentication")
            try:
                await self.authenticate()
            except AuthenticationError as e:
                self.logger.error(f"Authentication refresh failed, keeping previous token: {e}")
            else:
                self.logger.info("Authentication refreshed")
