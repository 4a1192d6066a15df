"""Error kinds raised by the indexer."""


class IndexerError(Exception):
    """Base class for indexer failures."""


class NetworkError(IndexerError):
    """RPC endpoint unreachable, timed out, or answered with a non-2xx status."""


class ProtocolError(IndexerError):
    """RPC answered but the JSON-RPC envelope reported an error or was malformed."""


class ConfigurationError(IndexerError):
    """A required program id or endpoint is missing or invalid."""


class CacheMiss(IndexerError):
    """No snapshot has been built yet."""
