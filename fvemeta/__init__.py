"""Parse and search the FVE metadata structures of BitLocker-encrypted volumes."""

__version__ = "0.1.0"