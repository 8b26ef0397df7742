"""Exception taxonomy for the firing and training protocol."""

from __future__ import annotations


class NestNetError(Exception):
    """Base class for every error raised by :mod:`nestnet`."""


class InvalidArgumentError(NestNetError, ValueError):
    """A required collaborator (node, activation, connection) is missing or unusable."""


class AlreadyFiredError(NestNetError, RuntimeError):
    """A connection fired again before its fired flag was cleared."""


class EmptyInputError(NestNetError, ValueError):
    """A vector-form fire or error call received zero elements."""


class SizeMismatchError(NestNetError, ValueError):
    """A signal vector cannot be mapped onto a node's input or output size."""


class EmptyAggregateError(NestNetError, RuntimeError):
    """An error aggregator was asked for a statistic before any signal was added."""


__all__ = [
    "NestNetError",
    "InvalidArgumentError",
    "AlreadyFiredError",
    "EmptyInputError",
    "SizeMismatchError",
    "EmptyAggregateError",
]
