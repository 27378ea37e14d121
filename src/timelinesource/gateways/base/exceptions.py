"""Gateway-specific exceptions."""


class GatewayError(Exception):
    """Base exception for gateway errors."""


class TransportError(GatewayError):
    """Raised when a fetch fails (network, permission, HTTP status or decoding)."""


class ConfigurationError(GatewayError):
    """Raised when gateway configuration is invalid."""
