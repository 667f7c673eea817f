"""Thin ``requests`` wrapper shared by the HTTP gateway adapters.

Maps transport failures and gateway answers onto the checkout error taxonomy:
network errors, timeouts and 5xx answers are ``GatewayUnreachable``; any 4xx
answer means the gateway refused the call (``VerificationRejected``).
"""

import requests
import structlog

from checkout.errors import GatewayUnreachable, VerificationRejected

logger = structlog.get_logger(__name__)


class GatewayHttpClient:
    def __init__(self, provider: str, base_url: str, secret_key: str, timeout: float, session=None) -> None:
        self.provider = provider
        self.base_url = base_url.rstrip("/")
        self.secret_key = secret_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def request(self, method: str, path: str, **kwargs) -> dict:
        url = f"{self.base_url}{path}"
        headers = {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
        }
        try:
            response = self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.Timeout as exc:
            logger.error("gateway_timeout", provider=self.provider, path=path, timeout=self.timeout)
            raise GatewayUnreachable(f"{self.provider} did not answer in time", provider=self.provider) from exc
        except requests.RequestException as exc:
            logger.error("gateway_request_failed", provider=self.provider, path=path, error=str(exc))
            raise GatewayUnreachable(f"Could not reach {self.provider}", provider=self.provider) from exc

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code >= 500:
            logger.error("gateway_server_error", provider=self.provider, path=path, status=response.status_code)
            raise GatewayUnreachable(
                f"{self.provider} answered with HTTP {response.status_code}",
                provider=self.provider,
            )
        if response.status_code >= 400:
            message = body.get("message") if isinstance(body, dict) else None
            logger.warning(
                "gateway_rejected_request",
                provider=self.provider,
                path=path,
                status=response.status_code,
                gateway_message=message,
            )
            raise VerificationRejected(
                message or f"{self.provider} rejected the request",
                provider=self.provider,
                status=response.status_code,
            )
        return body if isinstance(body, dict) else {}
