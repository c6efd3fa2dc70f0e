"""create-monorepo -- scaffold a production-ready JavaScript monorepo."""

__version__ = "1.0.0"
