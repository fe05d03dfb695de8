"""HTTP client construction for backend sessions.

Every backend session gets its own client because identity travels in cookies.
The factory centralizes the common header set, timeouts, limits and proxying.
"""

import os

import httpx

from claude_web_proxy.config.settings import Settings
from claude_web_proxy.core.logging import get_logger


logger = get_logger(__name__)

SESSION_COOKIE = "sessionKey"
SESSION_DATA_COOKIE = "_Secure-next-auth.session-data"
CLIENT_PLATFORM = "web_claude_ai"


def build_common_headers(settings: Settings) -> dict[str, str]:
    """Headers every backend request carries.

    Content type is left to httpx so JSON bodies and multipart uploads each get
    the right one.
    """
    return {
        "accept": "text/event-stream, text/event-stream",
        "accept-language": settings.http.accept_language,
        "anthropic-client-platform": CLIENT_PLATFORM,
        "origin": settings.backend.base_url,
        "priority": "u=1, i",
        "user-agent": settings.http.user_agent,
    }


class HTTPClientFactory:
    """Factory for backend HTTP clients.

    Provides centralized configuration for HTTP clients with:
    - The common backend header set
    - Session cookies (plus the gateway session-data cookie when enabled)
    - Connect/read timeouts configured once per session
    - Optional proxy and HTTP/2
    """

    @staticmethod
    def create_client(
        settings: Settings,
        session_key: str,
        *,
        max_keepalive_connections: int = 10,
        max_connections: int = 50,
    ) -> httpx.AsyncClient:
        """Create a client bound to one backend session.

        Args:
            settings: Application settings
            session_key: Value of the backend session cookie
            max_keepalive_connections: Max keep-alive connections for reuse
            max_connections: Max total concurrent connections

        Returns:
            Configured httpx.AsyncClient instance
        """
        http_settings = settings.http
        proxy = http_settings.proxy or _get_proxy_url()

        timeout = httpx.Timeout(
            connect=http_settings.timeout_connect,
            read=http_settings.timeout_read,
            write=http_settings.timeout_write,
            pool=http_settings.timeout_pool,
        )
        limits = httpx.Limits(
            max_keepalive_connections=max_keepalive_connections,
            max_connections=max_connections,
        )
        transport = httpx.AsyncHTTPTransport(
            limits=limits,
            http2=http_settings.http2,
            verify=http_settings.verify,
            proxy=proxy,
        )

        cookies = httpx.Cookies()
        cookies.set(SESSION_COOKIE, session_key)
        if settings.backend.gateway_mode:
            data_cookie = settings.backend.session_data_cookie
            if data_cookie:
                cookies.set(SESSION_DATA_COOKIE, data_cookie)
            else:
                logger.warning("gateway_mode_without_session_data")

        logger.debug(
            "backend_http_client_created",
            base_url=settings.backend.base_url,
            timeout_connect=http_settings.timeout_connect,
            timeout_read=http_settings.timeout_read,
            http2=http_settings.http2,
            has_proxy=proxy is not None,
            gateway_mode=settings.backend.gateway_mode,
        )

        return httpx.AsyncClient(
            base_url=settings.backend.base_url,
            headers=build_common_headers(settings),
            cookies=cookies,
            timeout=timeout,
            transport=transport,
        )


def _get_proxy_url() -> str | None:
    """Get proxy URL from environment variables.

    Returns:
        str or None: Proxy URL if any proxy is set
    """
    https_proxy = os.environ.get("HTTPS_PROXY") or os.environ.get("https_proxy")
    all_proxy = os.environ.get("ALL_PROXY")
    http_proxy = os.environ.get("HTTP_PROXY") or os.environ.get("http_proxy")

    proxy_url = https_proxy or all_proxy or http_proxy

    if proxy_url:
        logger.debug("proxy_configured", proxy_url=proxy_url)

    return proxy_url
