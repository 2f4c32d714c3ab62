"""SSH-2.0 transport pieces: wire types, ECDH key exchange and packet protection."""

__version__ = "0.1.0"