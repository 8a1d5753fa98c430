"""Testing and exploration toolkit for the INQ OData and MIS/MOGS GraphQL services."""

__version__ = "0.1.0"
