from __future__ import annotations


class AuthError(Exception):
    """Base class for every failure the identity layer reports to callers."""

    retryable = False


class InvalidUsernameFormat(AuthError):
    def __init__(self) -> None:
        super().__init__(
            "Username must be 3-15 characters: letters, numbers, _ and - only."
        )


class InvalidPasswordLength(AuthError):
    def __init__(self) -> None:
        super().__init__("Password must be at least 4 characters.")


class InvalidNickname(AuthError):
    def __init__(self) -> None:
        super().__init__("Nickname must be 1-20 characters.")


class UsernameTaken(AuthError):
    def __init__(self) -> None:
        super().__init__("Username is already taken.")


class InvalidCredentials(AuthError):
    # Same message for unknown username and wrong password.
    def __init__(self) -> None:
        super().__init__("Invalid username or password.")


class NotSignedIn(AuthError):
    def __init__(self) -> None:
        super().__init__("You need to sign in first.")


class SessionCorrupted(AuthError):
    """
    The persisted session could not be parsed into an `AuthUser`.

    Only raised and handled inside `SessionStore`; callers see "no session".
    """


class DirectoryUnavailable(AuthError):
    """The player directory could not be reached or the call failed."""

    retryable = True

    def __init__(self, message: str = "Player directory is unavailable. Please try again.") -> None:
        super().__init__(message)
