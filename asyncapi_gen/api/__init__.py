from .spec_client import SpecClient, SpecFetchError

__all__ = ["SpecClient", "SpecFetchError"]
