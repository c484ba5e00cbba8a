"""wiz_insights - Wiz security issues as security insights and a change-event feed."""

__version__ = "0.1.0"
