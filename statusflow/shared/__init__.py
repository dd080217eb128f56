"""Shared cross-cutting helpers: enums, telemetry, utilities."""
