"""
AsyncAPI Generator

Builds AsyncAPI 2.6.0 / 3.0.0 documents from sampled MQTT messages:
- Schema inference and a deduplicating schema registry
- Topic-to-channel mapping with parameter substitution and detection
- Document assembly and merging
"""

__version__ = "0.1.0"
