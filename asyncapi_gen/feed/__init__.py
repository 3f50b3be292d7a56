from .listener import MessageFeed, decode_payload

__all__ = ["MessageFeed", "decode_payload"]
