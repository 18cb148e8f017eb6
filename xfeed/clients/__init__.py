"""Client adapters that talk to the X API."""

from xfeed.clients.tweepy_client import TweepyClient

__all__ = ["TweepyClient"]
