"""Shared fixtures for the bbacl test suite."""

from bbacl.testing.fixtures import bitbucket_client, bitbucket_config, fake_bitbucket

__all__ = [
    "fake_bitbucket",
    "bitbucket_config",
    "bitbucket_client",
]
