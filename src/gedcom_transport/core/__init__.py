"""Shared building blocks: errors, options, progress events, cancellation."""
