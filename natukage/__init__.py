"""Static site builder for a diary written in a small S-expression markup."""

__version__ = "0.1.0"
