"""Rendering of session credentials for stdout."""

import json
import shlex
from datetime import datetime
from typing import Optional

from tabulate import tabulate

from .sts import SessionCredentials


class CredentialsFormatter:
    """Formats session credentials for display or shell consumption."""

    def format(self, credentials: SessionCredentials, format_type: str = 'token') -> str:
        """
        Render credentials in the requested format.

        Args:
            credentials: SessionCredentials to render
            format_type: One of 'token', 'env', 'json', 'table'

        Returns:
            Text to print, without a trailing newline
        """
        if format_type == 'token':
            return self.format_as_token(credentials)
        if format_type == 'env':
            return self.format_as_env(credentials)
        if format_type == 'json':
            return self.format_as_json(credentials)
        if format_type == 'table':
            return self.format_as_table(credentials)
        raise ValueError(f"Unknown output format: {format_type}")

    def format_as_token(self, credentials: SessionCredentials) -> str:
        return f"AWS_SESSION_TOKEN={credentials.session_token}"

    def format_as_env(self, credentials: SessionCredentials) -> str:
        """Shell export lines, suitable for eval."""
        return "\n".join([
            f"export AWS_ACCESS_KEY_ID={shlex.quote(credentials.access_key_id)}",
            f"export AWS_SECRET_ACCESS_KEY={shlex.quote(credentials.secret_access_key)}",
            f"export AWS_SESSION_TOKEN={shlex.quote(credentials.session_token)}",
        ])

    def format_as_json(self, credentials: SessionCredentials) -> str:
        """credential_process document (Version 1)."""
        data = {
            'Version': 1,
            'AccessKeyId': credentials.access_key_id,
            'SecretAccessKey': credentials.secret_access_key,
            'SessionToken': credentials.session_token,
        }
        expiration = self._format_expiration(credentials.expiration)
        if expiration is not None:
            data['Expiration'] = expiration
        return json.dumps(data, indent=2)

    def format_as_table(self, credentials: SessionCredentials) -> str:
        """Grid table with the secret key masked."""
        rows = [
            ['AccessKeyId', credentials.access_key_id],
            ['SecretAccessKey', self._mask(credentials.secret_access_key)],
            ['SessionToken', credentials.session_token],
            ['Expiration', self._format_expiration(credentials.expiration) or 'unknown'],
        ]
        return tabulate(rows, headers=['Field', 'Value'], tablefmt='grid')

    @staticmethod
    def _format_expiration(expiration: Optional[datetime]) -> Optional[str]:
        if expiration is None:
            return None
        if isinstance(expiration, datetime):
            return expiration.isoformat()
        return str(expiration)

    @staticmethod
    def _mask(value: str, visible: int = 4) -> str:
        if len(value) <= visible:
            return '*' * len(value)
        return '*' * (len(value) - visible) + value[-visible:]
