"""Test package helpers shared across terraspec suites."""
