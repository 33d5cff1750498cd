"""Exceptions raised by the store and input parsing."""


class AutoTrackError(Exception):
    """Base class for all autotrack errors."""


class NotFoundError(AutoTrackError, LookupError):
    """A vehicle or maintenance record id does not exist."""


class DuplicatePlateError(AutoTrackError, ValueError):
    """Another vehicle already uses this license plate."""


class InvalidInputError(AutoTrackError, ValueError):
    """User input failed validation."""


class DataFileError(AutoTrackError):
    """The data file exists but does not hold vehicles and maintenances."""
