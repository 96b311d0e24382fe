"""Service layer for the family calendar."""
