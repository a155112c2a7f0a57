"""Test doubles for the storage backends."""
