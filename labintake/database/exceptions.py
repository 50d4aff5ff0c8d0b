class ClientRegistryError(Exception):
    """Raised when the client registry cannot be read."""
