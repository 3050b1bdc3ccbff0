"""
Twilio Verify client for SMS one-time codes
"""
import asyncio
from typing import Dict, Any, Optional

from twilio.http.http_client import TwilioHttpClient
from twilio.rest import Client
from twilio.base.exceptions import TwilioException, TwilioRestException

from pricemyfloor.core.config import settings
from pricemyfloor.utils.exceptions import ExternalServiceError
from pricemyfloor.utils.logging import get_logger

logger = get_logger(__name__)

SERVICE_NAME = "Twilio"

# Twilio error codes with a clearer message for the user
ERROR_MESSAGES = {
    60200: "Invalid phone number format: {phone}. Please ensure the number includes country code.",
    60203: "Phone number {phone} is not verified. In Twilio trial mode, you can only send SMS to verified numbers.",
    20404: "Twilio Verify Service not found. Please check your service configuration.",
    20003: "Twilio authentication failed. Please check your Account SID and Auth Token.",
}


class TwilioVerifyClient:
    """
    Wraps the Twilio Verify service.
    Twilio generates and stores the code; we only start and check verifications.
    """

    def __init__(self):
        self.account_sid = settings.twilio.account_sid
        self.auth_token = settings.twilio.auth_token
        self.service_sid = settings.twilio.verify_service_sid
        self.timeout = settings.twilio.timeout
        self._client: Optional[Client] = None

    def _get_service(self):
        if not self.account_sid or not self.auth_token:
            raise ExternalServiceError(
                SERVICE_NAME, "SMS service not configured - missing Twilio Account SID or Auth Token"
            )
        if not self.service_sid:
            raise ExternalServiceError(
                SERVICE_NAME, "SMS service not configured - missing Twilio Verify Service SID"
            )
        if self._client is None:
            self._client = Client(self.account_sid, self.auth_token, http_client=TwilioHttpClient(timeout=self.timeout))
        return self._client.verify.v2.services(self.service_sid)

    @staticmethod
    def _translate(error: TwilioRestException, phone: str) -> ExternalServiceError:
        template = ERROR_MESSAGES.get(error.code)
        message = template.format(phone=phone) if template else f"Twilio error ({error.code}): {error.msg}"
        return ExternalServiceError(SERVICE_NAME, message, status_code=error.status, code=error.code)

    def _start(self, phone: str) -> Dict[str, Any]:
        verification = self._get_service().verifications.create(to=phone, channel="sms")
        return {"sid": verification.sid, "status": verification.status}

    def _check(self, phone: str, code: str) -> Dict[str, Any]:
        check = self._get_service().verification_checks.create(to=phone, code=code)
        return {"sid": check.sid, "status": check.status}

    async def start_verification(self, phone: str) -> Dict[str, Any]:
        """
        Send an SMS code to an E.164 phone number.

        Returns:
            Dict with the verification sid and status ("pending")

        Raises:
            ExternalServiceError: If Twilio is not configured or rejects the request
        """
        try:
            result = await asyncio.to_thread(self._start, phone)
            logger.info(f"[green]✅ SMS verification started:[/green] [cyan]{result['sid']}[/cyan] ({result['status']})")
            return result
        except TwilioRestException as e:
            logger.error(f"[red]❌ Twilio rejected verification:[/red] [yellow]{e.code}[/yellow] - {e.msg}")
            raise self._translate(e, phone)
        except TwilioException as e:
            logger.error(f"[red]❌ Twilio client error:[/red] {e}")
            raise ExternalServiceError(SERVICE_NAME, f"SMS service network error: {e}")

    async def check_verification(self, phone: str, code: str) -> bool:
        """
        Ask Twilio whether `code` is the one it sent to `phone`.

        Returns:
            True when Twilio reports the verification as approved
        """
        try:
            result = await asyncio.to_thread(self._check, phone, code)
            logger.info(f"[cyan]SMS verification check:[/cyan] {result['status']}")
            return result["status"] == "approved"
        except TwilioRestException as e:
            # 20404 on a check means no pending verification for this number (expired or used)
            if e.code == 20404:
                logger.warning("[yellow]⚠️  No pending SMS verification for number[/yellow]")
                return False
            logger.error(f"[red]❌ Twilio verification check failed:[/red] [yellow]{e.code}[/yellow] - {e.msg}")
            raise self._translate(e, phone)
        except TwilioException as e:
            logger.error(f"[red]❌ Twilio client error:[/red] {e}")
            raise ExternalServiceError(SERVICE_NAME, f"SMS service network error: {e}")
