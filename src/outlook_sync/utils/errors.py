"""Custom exceptions for the Outlook sync worker."""

from typing import Optional


class OutlookSyncError(Exception):
    """Base exception for Outlook sync worker errors."""
    pass


class SyncError(OutlookSyncError):
    """Error during a calendar binding sync run."""
    pass


class BindingNotFoundError(SyncError):
    """The requested calendar binding does not exist."""

    def __init__(self, binding_id: str):
        self.binding_id = binding_id
        super().__init__(f"Calendar binding {binding_id} not found")


class ConfigurationError(OutlookSyncError):
    """Malformed binding configuration or service settings."""
    pass


class DuplicateBindingError(ConfigurationError):
    """A binding with the same source and target already exists."""
    pass


class PersistenceError(OutlookSyncError):
    """Committing sync metadata failed after remote changes were applied."""
    pass


class CalendarStoreError(OutlookSyncError):
    """Error calling a calendar provider (Microsoft Graph, in-memory store, ...)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class AuthenticationError(CalendarStoreError):
    """Credential is missing, invalid or expired at the calendar provider."""
    pass


class TransientProviderError(CalendarStoreError):
    """Network failure, throttling or server error that may succeed on retry."""
    pass
