"""Test doubles for code that depends on a BackgroundServer."""

from bgserver.adapters.fake.fake_server import FakeBackgroundServer

__all__ = ["FakeBackgroundServer"]
