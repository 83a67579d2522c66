"""Operator CLI and polling client for the height monitor service."""
