"""Munchkin card compositing and batch export (PNG, ZIP archive, duplex print PDF)."""
