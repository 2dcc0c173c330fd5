"""Domain error types."""


class VoicePrompterError(Exception):
    """Base class for every error the scroll engine raises or reports."""


class ConfigError(VoicePrompterError):
    """Raised when required configuration (e.g. the provider credential) is missing or invalid."""


class ConnectError(VoicePrompterError):
    """Raised when a provider connection attempt fails. Transient — retried with backoff."""


class ConnectTimeoutError(ConnectError):
    """Raised when the provider does not acknowledge session start within the connect timeout."""


class ProtocolError(VoicePrompterError):
    """Raised for a malformed provider message. Logged; the session continues."""


class ProviderError(VoicePrompterError):
    """Raised when the provider reports an error message. Fatal for the session."""


class SessionLostError(VoicePrompterError):
    """Raised once reconnect attempts are exhausted after a session had been streaming."""


class ResourceError(VoicePrompterError):
    """Raised when the microphone cannot be opened. Fatal — retrying cannot fix a denied permission."""
