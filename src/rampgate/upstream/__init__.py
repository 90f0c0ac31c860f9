"""Signed HTTP access to the upstream onramp/offramp API."""

from rampgate.upstream.base import UpstreamEnvelope, UpstreamResult
from rampgate.upstream.client import UpstreamClient

__all__ = ["UpstreamClient", "UpstreamEnvelope", "UpstreamResult"]
