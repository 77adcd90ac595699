# src/i18n_checker/errors.py


class I18nCheckerError(Exception):
    """Base class for all errors raised by the i18n checker."""


class ConfigurationError(I18nCheckerError):
    """
    Raised while loading configuration: a broken assertion template catalog,
    a rule code without a template definition, or a rule module that cannot be loaded.
    These are fatal and are never recovered from.
    """


class InvalidArgumentError(I18nCheckerError, ValueError):
    """Raised when a required argument (facts, body, headers) is missing."""
