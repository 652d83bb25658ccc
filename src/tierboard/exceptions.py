class TierboardException(Exception):
    """Base class for errors raised by tierboard."""
