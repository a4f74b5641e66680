# ocifsync/exceptions.py
"""
Exception types raised by the ocifsync package.

Only failures that callers are expected to tell apart get their own type.
Shape disagreements between a template and a payload are never errors: the
namespace injector degrades by omission instead.
"""


class OcifSyncError(Exception):
    """Base class for all ocifsync errors."""


class XmlParseError(OcifSyncError, ValueError):
    """
    Raised when an XML document cannot be parsed into a tree.

    The original parser exception is always chained as ``__cause__`` and its
    message is carried over unchanged.
    """


class TemplateStructureError(OcifSyncError, ValueError):
    """Raised when a SOAP template parses but has no Body or operation element."""
