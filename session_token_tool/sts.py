"""Session token requests against AWS STS."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError

from .exceptions import SessionTokenError
from .mfa import MfaToken

logger = logging.getLogger(__name__)


@dataclass
class SessionCredentials:
    """Temporary credentials returned by GetSessionToken."""
    access_key_id: str
    secret_access_key: str
    session_token: str
    expiration: Optional[datetime] = None


class SessionTokenRequester:
    """Calls GetSessionToken and validates the response."""

    def __init__(self, sts_client):
        """
        Initialize the requester.

        Args:
            sts_client: Boto3 STS client
        """
        self.sts_client = sts_client

    def get_session_token(self, duration_seconds: Optional[int] = None,
                          mfa_serial: Optional[str] = None,
                          mfa_token: Optional[MfaToken] = None) -> SessionCredentials:
        """
        Request a session token.

        The MFA code is read beforehand, inside the bounded credential load,
        and only passed through here.

        Args:
            duration_seconds: Requested lifetime; the STS default applies when None
            mfa_serial: MFA device to authenticate with
            mfa_token: Code for mfa_serial

        Returns:
            SessionCredentials from the response

        Raises:
            SessionTokenError: If the call fails or the response lacks credentials
        """
        params = {}
        if duration_seconds is not None:
            params['DurationSeconds'] = duration_seconds
        if mfa_serial:
            if mfa_token is None:
                raise SessionTokenError(f"MFA device {mfa_serial} configured but no MFA code was read")
            params['SerialNumber'] = mfa_serial
            params['TokenCode'] = mfa_token.value

        logger.debug(f"Calling GetSessionToken (duration: {duration_seconds}, mfa: {bool(mfa_serial)})")
        try:
            response = self.sts_client.get_session_token(**params)
        except ClientError as e:
            error_code = e.response.get('Error', {}).get('Code', 'Unknown')
            error_message = e.response.get('Error', {}).get('Message', str(e))
            raise SessionTokenError(f"GetSessionToken failed ({error_code}): {error_message}") from e
        except BotoCoreError as e:
            raise SessionTokenError(f"GetSessionToken failed: {str(e)}") from e

        return self._parse_response(response)

    @staticmethod
    def _parse_response(response: dict) -> SessionCredentials:
        credentials = response.get('Credentials')
        if not credentials:
            raise SessionTokenError("GetSessionToken response missing credentials")

        missing = [key for key in ('AccessKeyId', 'SecretAccessKey', 'SessionToken')
                   if not credentials.get(key)]
        if missing:
            raise SessionTokenError(
                f"GetSessionToken response missing field(s): {', '.join(missing)}"
            )

        return SessionCredentials(
            access_key_id=credentials['AccessKeyId'],
            secret_access_key=credentials['SecretAccessKey'],
            session_token=credentials['SessionToken'],
            expiration=credentials.get('Expiration')
        )
