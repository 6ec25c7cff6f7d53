"""Custom exceptions for the AWS session token tool."""


class SessionTokenToolError(Exception):
    """Base exception for the AWS session token tool."""
    pass


class ConfigurationError(SessionTokenToolError):
    """Configuration-related errors."""
    pass


class AuthenticationError(SessionTokenToolError):
    """Credential resolution errors."""
    pass


class MfaPromptError(AuthenticationError):
    """The MFA code could not be obtained from the user."""
    pass


class NotATtyError(MfaPromptError):
    """MFA prompt invoked without an interactive stdin."""
    pass


class MfaPromptIOError(MfaPromptError):
    """Reading the MFA code from the terminal failed."""
    pass


class CredentialTimeoutError(AuthenticationError):
    """Credential resolution did not finish within the load timeout."""
    pass


class SessionTokenError(SessionTokenToolError):
    """GetSessionToken failed or returned an incomplete response."""
    pass
