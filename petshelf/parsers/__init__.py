from petshelf.parsers.share_link import LinkCodec

__all__ = [
    "LinkCodec",
]
