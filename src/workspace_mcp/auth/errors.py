"""Exceptions raised by the credential lifecycle."""


class AuthError(Exception):
    """Base class for authentication failures."""


class CredentialFormatError(AuthError):
    """Stored or environment-supplied token/key data exists but is malformed.

    Fatal at startup. Recovery is to re-run the initial setup.
    """


class CredentialNotFoundError(AuthError):
    """No client keys are available to start an interactive grant."""


class AuthExpiredError(AuthError):
    """A hard-expired token could not be refreshed.

    Fatal to the in-flight request. Recovery is to delete the persisted token
    and run the interactive authorization again.
    """


class RefreshTransientError(AuthError):
    """A best-effort refresh of a nearly expired token failed.

    Logged and never raised to callers: the current token is still valid.
    """


class TokenRefreshError(AuthError):
    """The token endpoint rejected a refresh or probe request."""


class AuthorizationError(AuthError):
    """The interactive consent flow failed."""
