"""Playwright-backed host adapter."""
