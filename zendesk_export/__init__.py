"""Export a Zendesk Help Center to a browsable static HTML mirror."""

__version__ = "1.0.0"
