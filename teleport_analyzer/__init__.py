"""Read Claude Code remote sessions without cloning them."""

__version__ = '0.1.0'
