"""R&D tax credit QRE apportionment and credit engine (not tax advice)."""

__version__ = "0.1.0"
