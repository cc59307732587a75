"""Personal Finance Tracker package."""

__all__ = [
    "config",
    "models",
    "db",
    "errors",
    "filters",
    "users",
    "categories",
    "transactions",
    "analytics",
    "session",
    "reports",
    "webapp",
    "cli",
]

__version__ = "0.1.0"
