"""SocketCAN tools: CAN frame types, slcan protocol bridging and adapter setup."""

__version__ = "0.1.0"