"""Provider clients and supporting services."""
