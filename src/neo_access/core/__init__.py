"""Core exceptions and value objects shared by all neo-access features."""
