"""klutterbox - track household items stored in labeled boxes."""

__version__ = "0.1.0"
