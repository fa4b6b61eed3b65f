"""Helpers for a web interface: in-memory logs and JSON result bodies."""