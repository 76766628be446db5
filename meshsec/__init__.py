"""Consumer-side mesh security: price feed, converter, IBC packets and staking arithmetic."""

__version__ = "0.1.0"