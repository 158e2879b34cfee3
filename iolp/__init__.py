"""Import the GSA Inventory of Owned and Leased Properties into SQL tables."""

__version__ = "0.1.0"
