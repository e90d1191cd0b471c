"""License view resolution and policy rule evaluation for resolved dependency trees."""

__version__ = "0.1.0"
