"""CompSetIQ - competitive set analysis for rental properties."""

__version__ = "0.1.0"
