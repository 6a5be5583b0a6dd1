"""Metrics and request instrumentation."""
