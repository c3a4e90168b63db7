"""DCC packet decoding and a fading model railway light signal on simulated GPIO pins."""

__version__ = "0.1.0"