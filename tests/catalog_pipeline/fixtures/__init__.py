"""Canned responses and fakes for catalog pipeline tests."""
