"""Rampgate - signed, cached gateway for crypto onramp/offramp flows."""

__version__ = "0.1.0"
