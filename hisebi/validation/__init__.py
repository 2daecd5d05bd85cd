"""Entry validation package."""

from hisebi.validation.validator import EntryValidator

__all__ = ["EntryValidator"]
