"""Command-line interface for the AWS session token tool."""

import argparse
import logging
import sys


def setup_logging(debug: bool = False) -> None:
    """
    Configure logging for the application.

    Log records go to stderr so stdout only carries the token.

    Args:
        debug: Enable debug-level logging if True
    """
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        stream=sys.stderr
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Obtain a temporary AWS session token for a named profile, prompting for MFA when required'
    )
    parser.add_argument(
        '--profile',
        help='AWS profile name (default: home, or $AWS_SESSION_TOKEN_PROFILE)'
    )
    parser.add_argument(
        '--region',
        help='Region used when the profile does not set one'
    )
    parser.add_argument(
        '--timeout',
        dest='load_timeout',
        type=float,
        help='Seconds allowed for credential resolution, MFA prompt included (default: 120)'
    )
    parser.add_argument(
        '--duration',
        dest='duration_seconds',
        type=int,
        help='Requested session token lifetime in seconds'
    )
    parser.add_argument(
        '--mfa-serial',
        help='MFA device serial or ARN to send with GetSessionToken'
    )
    parser.add_argument(
        '--format',
        choices=['token', 'env', 'json', 'table'],
        help='Output format (default: token)'
    )
    parser.add_argument(
        '--config',
        help='Optional YAML configuration file'
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug logging'
    )
    return parser


def main(argv=None) -> int:
    """
    Main entry point for the CLI.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    args = build_parser().parse_args(argv)
    setup_logging(args.debug)

    logger = logging.getLogger(__name__)

    try:
        from .config import ConfigurationManager
        from .auth import AuthenticationManager
        from .mfa import StdinMfaTokenProvider
        from .sts import SessionTokenRequester
        from .formatter import CredentialsFormatter
        from .exceptions import (
            ConfigurationError,
            AuthenticationError,
            CredentialTimeoutError,
            MfaPromptError,
            SessionTokenError
        )

        config = ConfigurationManager.load_config(args.config, overrides={
            'profile': args.profile,
            'region': args.region,
            'load_timeout': args.load_timeout,
            'duration_seconds': args.duration_seconds,
            'mfa_serial': args.mfa_serial,
            'format': args.format,
        })
        logger.debug(f"Configuration loaded (profile: {config.aws.profile}, format: {config.output.format})")

        mfa_provider = StdinMfaTokenProvider()
        auth_manager = AuthenticationManager(mfa_provider, load_timeout=config.aws.load_timeout)
        session = auth_manager.get_session(profile=config.aws.profile, region=config.aws.region)

        mfa_serial = auth_manager.profile_mfa_serial(config.aws.mfa_serial)
        resolved = auth_manager.resolve_credentials(session, config.aws.profile, mfa_serial=mfa_serial)
        logger.info(f"Credentials resolved for profile '{config.aws.profile}' (region: {session.region_name})")

        sts_client = session.client('sts')
        requester = SessionTokenRequester(sts_client)
        credentials = requester.get_session_token(
            duration_seconds=config.aws.duration_seconds,
            mfa_serial=resolved.mfa_serial,
            mfa_token=resolved.mfa_token
        )
        logger.info(f"Session token obtained (expires: {credentials.expiration})")

        print(CredentialsFormatter().format(credentials, config.output.format))
        return 0  # Success

    except ConfigurationError as e:
        logger.error(f"Configuration error: {str(e)}")
        print(f"\nConfiguration Error: {str(e)}", file=sys.stderr)
        return 1  # Configuration error

    except CredentialTimeoutError as e:
        logger.error(f"Credential resolution timed out: {str(e)}")
        print(f"\nTimeout Error: {str(e)}", file=sys.stderr)
        return 3  # Credential load timeout

    except MfaPromptError as e:
        logger.error(f"MFA prompt failed: {str(e)}")
        print(f"\nMFA Error: {str(e)}", file=sys.stderr)
        return 2  # Authentication error

    except AuthenticationError as e:
        logger.error(f"Authentication error: {str(e)}")
        print(f"\nAuthentication Error: {str(e)}", file=sys.stderr)
        return 2  # Authentication error

    except SessionTokenError as e:
        logger.error(f"Session token request failed: {str(e)}")
        print(f"\nSession Token Error: {str(e)}", file=sys.stderr)
        return 4  # STS error

    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130

    except Exception as e:
        logger.exception("Unexpected error occurred")
        print(f"\nUnexpected Error: {str(e)}", file=sys.stderr)
        return 5  # Unexpected error


if __name__ == '__main__':
    sys.exit(main())
