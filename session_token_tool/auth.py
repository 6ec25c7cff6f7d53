"""AWS authentication management."""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional, TextIO

import boto3
import botocore.session
from botocore.credentials import ReadOnlyCredentials
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    NoCredentialsError,
    PartialCredentialsError,
    ProfileNotFound,
)

from .config import DEFAULT_LOAD_TIMEOUT
from .exceptions import AuthenticationError, CredentialTimeoutError
from .mfa import MfaToken, StdinMfaTokenProvider

try:
    import termios
except ImportError:
    # No terminal attributes to save on Windows
    termios = None

logger = logging.getLogger(__name__)

DEFAULT_REGION = 'us-east-1'

NO_CREDENTIALS_MESSAGE = (
    "No valid AWS credentials found for profile '{profile}'. Please configure credentials using one of:\n"
    "  1. AWS credentials file (~/.aws/credentials)\n"
    "  2. AWS config file (~/.aws/config) with a source_profile or credential_process\n"
    "  3. Environment variables (AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY)"
)


@dataclass
class ResolvedCredentials:
    """Credentials plus the MFA code GetSessionToken must carry, if any."""
    credentials: ReadOnlyCredentials
    mfa_serial: Optional[str] = None
    mfa_token: Optional[MfaToken] = None


class AuthenticationManager:
    """Builds a profile-scoped session and resolves its credentials."""

    def __init__(self, mfa_provider: Optional[StdinMfaTokenProvider] = None,
                 load_timeout: float = DEFAULT_LOAD_TIMEOUT):
        """
        Initialize the authentication manager.

        Args:
            mfa_provider: Prompt used whenever the credential chain needs an MFA code
            load_timeout: Seconds allowed for credential resolution, MFA prompt included
        """
        self.mfa_provider = mfa_provider or StdinMfaTokenProvider()
        self.load_timeout = load_timeout
        self.core_session: Optional[botocore.session.Session] = None

    def get_session(self, profile: str, region: Optional[str] = None) -> boto3.Session:
        """
        Create a boto3 session for a named profile with the MFA prompt attached.

        The region is taken from the profile; ``region`` is only the fallback
        for profiles that do not set one.

        Args:
            profile: AWS profile name
            region: Fallback AWS region

        Returns:
            Configured boto3 Session

        Raises:
            AuthenticationError: If the profile does not exist or the session cannot be built
        """
        try:
            core_session = botocore.session.Session(profile=profile)

            # AssumeRole profiles with mfa_serial call this prompter for the code
            resolver = core_session.get_component('credential_provider')
            assume_role = resolver.get_provider('assume-role')
            assume_role._prompter = self.mfa_provider

            profile_region = core_session.get_config_variable('region')
            if not profile_region:
                logger.debug(f"Profile '{profile}' sets no region, using {region or DEFAULT_REGION}")

            self.core_session = core_session
            return boto3.Session(
                botocore_session=core_session,
                region_name=profile_region or region or DEFAULT_REGION
            )

        except ProfileNotFound as e:
            raise AuthenticationError(
                f"AWS profile '{profile}' not found. Please check your AWS configuration file (~/.aws/config)."
            ) from e

        except (BotoCoreError, ValueError) as e:
            raise AuthenticationError(
                f"Failed to create AWS session: {str(e)}"
            ) from e

    def resolve_credentials(self, session: boto3.Session, profile: str,
                            mfa_serial: Optional[str] = None) -> ResolvedCredentials:
        """
        Resolve the session's credentials within the load timeout.

        Every MFA prompt happens during this call: the one AssumeRole
        triggers, and the one for ``mfa_serial`` when GetSessionToken needs
        a code. Both count against the same timeout.

        Args:
            session: Session returned by get_session
            profile: Profile name, used in error messages
            mfa_serial: MFA device whose code GetSessionToken must carry

        Returns:
            ResolvedCredentials

        Raises:
            CredentialTimeoutError: If resolution exceeds the load timeout
            MfaPromptError: If the MFA prompt fails
            AuthenticationError: If no usable credentials are found
        """
        logger.debug(f"Resolving credentials for profile '{profile}' (timeout: {self.load_timeout}s)")

        def resolve():
            credentials = self._load_credentials(session, profile)
            mfa_token = self.mfa_provider.fetch(mfa_serial) if mfa_serial else None
            return ResolvedCredentials(credentials, mfa_serial, mfa_token)

        return run_with_timeout(
            resolve,
            self.load_timeout,
            f"Timed out after {self.load_timeout:g}s resolving credentials for profile '{profile}'",
            terminal=self.mfa_provider.stdin
        )

    def profile_mfa_serial(self, configured: Optional[str] = None) -> Optional[str]:
        """
        Return the MFA serial GetSessionToken itself must carry.

        Profiles with a role_arn spend their MFA code on AssumeRole and their
        credentials are session credentials, so they return None even when a
        serial was configured. Otherwise the configured serial wins over the
        profile's mfa_serial.
        """
        scoped_config = {}
        if self.core_session is not None:
            try:
                scoped_config = self.core_session.get_scoped_config()
            except ProfileNotFound:
                pass

        if scoped_config.get('role_arn'):
            if configured:
                logger.warning(f"Ignoring MFA serial {configured}: the profile assumes a role")
            return None
        return configured or scoped_config.get('mfa_serial')

    @staticmethod
    def _load_credentials(session: boto3.Session, profile: str) -> ReadOnlyCredentials:
        try:
            credentials = session.get_credentials()
            if credentials is None:
                raise AuthenticationError(NO_CREDENTIALS_MESSAGE.format(profile=profile))
            # Deferred providers (AssumeRole, SSO) fetch here
            return credentials.get_frozen_credentials()

        except ProfileNotFound as e:
            raise AuthenticationError(
                f"AWS profile '{profile}' not found. Please check your AWS configuration file (~/.aws/config)."
            ) from e

        except NoCredentialsError as e:
            raise AuthenticationError(NO_CREDENTIALS_MESSAGE.format(profile=profile)) from e

        except PartialCredentialsError as e:
            raise AuthenticationError(
                f"Incomplete AWS credentials found: {str(e)}\n"
                "Please ensure both aws_access_key_id and aws_secret_access_key are set."
            ) from e

        except ClientError as e:
            raise AuthenticationError(
                f"Credential provider request failed: {str(e)}"
            ) from e

        except BotoCoreError as e:
            raise AuthenticationError(
                f"Failed to resolve AWS credentials: {str(e)}"
            ) from e


def run_with_timeout(func: Callable[[], Any], timeout: float, message: str,
                     terminal: Optional[TextIO] = None) -> Any:
    """
    Run func in a worker thread and wait at most timeout seconds for it.

    The worker is a daemon thread, so a terminal read still blocked after
    the timeout does not keep the process alive. When terminal is a tty its
    attributes are saved first and put back if the worker is abandoned, by
    timeout or Ctrl-C, since getpass cannot re-enable echo itself then.

    Raises:
        CredentialTimeoutError: If func does not return in time
        Exception: Whatever func raised
    """
    outcome = {}

    def target():
        try:
            outcome['result'] = func()
        except BaseException as e:
            outcome['error'] = e

    saved_terminal = _save_terminal(terminal)
    worker = threading.Thread(target=target, name='credential-loader', daemon=True)
    worker.start()
    try:
        worker.join(timeout)
    finally:
        if worker.is_alive() and saved_terminal is not None:
            _restore_terminal(saved_terminal)

    if worker.is_alive():
        raise CredentialTimeoutError(message)
    if 'error' in outcome:
        raise outcome['error']
    return outcome.get('result')


def _save_terminal(stream: Optional[TextIO]):
    if termios is None or stream is None:
        return None
    try:
        if not stream.isatty():
            return None
        fd = stream.fileno()
        return fd, termios.tcgetattr(fd)
    except (AttributeError, TypeError, ValueError, OSError, termios.error):
        return None


def _restore_terminal(saved) -> None:
    fd, attributes = saved
    try:
        termios.tcsetattr(fd, termios.TCSAFLUSH, attributes)
    except (OSError, termios.error) as e:
        logger.debug(f"Could not restore terminal settings: {e}")
