"""
Resend transactional email API client
"""
import httpx
from typing import Dict, Any, List, Optional, Union
from pricemyfloor.core.config import settings
from pricemyfloor.utils.exceptions import ExternalServiceError
from pricemyfloor.utils.logging import get_logger

logger = get_logger(__name__)

SERVICE_NAME = "Resend"


class ResendClient:
    """
    Client for the Resend REST API.
    Only the send endpoint is used.
    """

    def __init__(self):
        self.base_url = settings.resend.base_url
        self.api_key = settings.resend.api_key
        self.from_address = settings.resend.from_address
        self.timeout = settings.resend.timeout

    def _get_headers(self) -> Dict[str, str]:
        """Get request headers with Bearer authentication"""
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

    async def send_email(
        self,
        to: Union[str, List[str]],
        subject: str,
        html: str,
        reply_to: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Send an HTML email.

        Args:
            to: Recipient address or list of addresses
            subject: Subject line
            html: HTML body
            reply_to: Optional reply-to address

        Returns:
            Dict containing the Resend message id

        Raises:
            ExternalServiceError: If the API key is missing or Resend rejects the request
        """
        if not self.api_key:
            raise ExternalServiceError(SERVICE_NAME, "Email service not configured - missing API key")

        payload: Dict[str, Any] = {
            "from": self.from_address,
            "to": [to] if isinstance(to, str) else to,
            "subject": subject,
            "html": html,
        }
        if reply_to:
            payload["reply_to"] = reply_to

        url = f"{self.base_url.rstrip('/')}/emails"

        try:
            logger.debug(f"[cyan]Sending email via Resend:[/cyan] {subject}")
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, json=payload, headers=self._get_headers())
                response.raise_for_status()
                result = response.json()
                logger.info(f"[green]✅ Email sent via Resend:[/green] [cyan]{result.get('id')}[/cyan]")
                return result

        except httpx.HTTPStatusError as e:
            error_detail = e.response.text or "Unknown error"
            logger.error(
                f"[red]❌ Resend rejected email:[/red] "
                f"[yellow]{e.response.status_code}[/yellow] - {error_detail}"
            )
            raise ExternalServiceError(
                SERVICE_NAME,
                f"Email service error ({e.response.status_code}): {error_detail}",
                status_code=e.response.status_code,
            )
        except httpx.TimeoutException:
            logger.error(f"[red]❌ Resend request timed out after {self.timeout}s[/red]")
            raise ExternalServiceError(SERVICE_NAME, f"Email service request timed out after {self.timeout} seconds")
        except httpx.HTTPError as e:
            logger.error(f"[red]❌ HTTP error sending email:[/red] {str(e)}")
            raise ExternalServiceError(SERVICE_NAME, f"Email service network error: {e}")
