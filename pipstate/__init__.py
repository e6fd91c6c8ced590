"""pipstate — idempotent pip install directives and pip version facts."""

__version__ = "0.1.0"
