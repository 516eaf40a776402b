"""Shared infrastructure: configuration, exceptions, logging and text helpers."""
