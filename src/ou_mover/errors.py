"""Exceptions that stop a run before or instead of the batch loop."""


class OuMoverError(Exception):
    """Base error for the project."""


class SetupError(OuMoverError):
    """The log sink, directory connection or destination is unusable."""


class ConfigError(SetupError):
    """An environment setting has an invalid value."""


class LoadError(OuMoverError):
    """The work list is missing, unreadable or has no identifiers."""
