"""Live reload dev server with incremental style and page builds."""

__version__ = "0.1.0"
