class ConfigurationError(Exception):
    """Parameter tables are missing or malformed. Fatal: retrying cannot fix it."""
