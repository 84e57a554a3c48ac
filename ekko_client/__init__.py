"""ekko-client: live transcript viewer and session remote for the ekko server."""

__version__ = "0.1.0"
