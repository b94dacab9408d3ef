"""Gilfoyle — terminal AI development assistant."""

__version__ = "0.4.0"
