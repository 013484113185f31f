# auth/errors.py
"""
Authentication errors.

Login failures (unknown email, wrong password) are not exceptions; see
auth.models.VerificationResult. Only registration problems and storage
outages are raised.
"""


class AuthError(Exception):
    """Base authentication error."""
    pass


class UserExistsError(AuthError):
    """User with this email already exists."""
    pass


class WeakPasswordError(AuthError):
    """Password doesn't meet strength requirements."""
    pass


class StoreUnavailableError(Exception):
    """
    A user or session store could not be reached.

    Not an AuthError: it says nothing about the caller's credentials and
    must surface as a generic server failure.
    """
    pass
