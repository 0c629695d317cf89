"""
Pytest plugin for bbacl testing fixtures.

To use these fixtures in your tests, add this to your top-level conftest.py:

    pytest_plugins = ["bbacl.testing.conftest"]

Or import the fixtures directly:

    from bbacl.testing.fixtures import bitbucket_client, fake_bitbucket
"""

from bbacl.testing.fixtures import bitbucket_client, fake_bitbucket, bitbucket_config

__all__ = [
    "fake_bitbucket",
    "bitbucket_config",
    "bitbucket_client",
]
