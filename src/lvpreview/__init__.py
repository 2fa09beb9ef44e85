"""lvpreview - incremental LVGL to WebAssembly builds for live previews."""

__version__ = "0.1.0"
