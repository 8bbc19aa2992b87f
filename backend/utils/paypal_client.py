# backend/utils/paypal_client.py
import httpx
import logging
from urllib.parse import urljoin
from config import settings

logger = logging.getLogger(__name__)

# Headers PayPal signs every webhook delivery with
PAYPAL_SIGNATURE_HEADERS = {
    "auth_algo": "paypal-auth-algo",
    "cert_url": "paypal-cert-url",
    "transmission_id": "paypal-transmission-id",
    "transmission_sig": "paypal-transmission-sig",
    "transmission_time": "paypal-transmission-time",
}

class PayPalClient:
    def __init__(self, transport: httpx.AsyncBaseTransport = None):
        # Initialize configuration
        self.api_url = settings.PAYPAL_API_URL
        self.client_id = settings.PAYPAL_CLIENT_ID
        self.client_secret = settings.PAYPAL_CLIENT_SECRET
        self.webhook_id = settings.PAYPAL_WEBHOOK_ID
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=10.0)

    async def get_auth_token(self) -> str:
        # Retrieve OAuth access token using client credentials
        auth_url = urljoin(self.api_url, "/v1/oauth2/token")
        async with self._client() as client:
            try:
                response = await client.post(
                    auth_url,
                    data={"grant_type": "client_credentials"},
                    auth=(self.client_id, self.client_secret),
                )
                response.raise_for_status()
                return response.json()["access_token"]
            except (httpx.RequestError, httpx.HTTPStatusError) as e:
                logger.error(f"PayPal auth error: {e}")
                raise

    async def verify_webhook_signature(self, headers, event: dict) -> bool:
        """Ask PayPal whether a webhook delivery is genuine.

        Returns False when signature headers are missing or PayPal answers
        anything other than SUCCESS; transport errors propagate.
        """
        lowered = {k.lower(): v for k, v in headers.items()}
        payload = {}
        for field, header in PAYPAL_SIGNATURE_HEADERS.items():
            value = lowered.get(header)
            if not value:
                logger.warning("PayPal webhook missing header %s", header)
                return False
            payload[field] = value
        payload["webhook_id"] = self.webhook_id
        payload["webhook_event"] = event

        token = await self.get_auth_token()
        verify_url = urljoin(self.api_url, "/v1/notifications/verify-webhook-signature")
        request_headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {token}"
        }
        async with self._client() as client:
            try:
                response = await client.post(verify_url, json=payload, headers=request_headers)
                response.raise_for_status()
            except (httpx.RequestError, httpx.HTTPStatusError) as e:
                # Log detailed error information before re-raising
                try:
                    resp_text = e.response.text if hasattr(e, 'response') and e.response is not None else str(e)
                except Exception:
                    resp_text = str(e)
                logger.error(f"PayPal webhook verification error: {resp_text}")
                raise

        return response.json().get("verification_status") == "SUCCESS"

paypal_client = PayPalClient()
