"""gitboard-bridge - typed message protocol between a privileged host and a sandboxed view."""

__version__ = "0.1.0"
