# ocifsync/template_cache.py
"""
Process-wide cache of parsed SOAP XML templates.

Each template file is read and parsed at most once; later lookups reuse the
same entry. Concurrent misses for the same file share one in-flight load, so
a burst of first requests still parses the file a single time. Failed loads
are never cached: the next lookup retries.

The cache is meant to be used from one event loop. Entries are immutable
once stored.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .template import (
    EnvelopeLayout,
    TemplateNode,
    compile_template,
    describe_envelope,
    header_subtemplate,
    operation_subtemplate,
)
from .utils.file_io import get_data
from .utils.xml_parser import ATTRIBUTES_KEY, XmlnsAttribute, parse_xml

if TYPE_CHECKING:
    from .utils.config_loader import TemplatesSection

logger: logging.Logger = logging.getLogger(__name__)

TemplateReader = Callable[[Path, str], Awaitable[str]]


@dataclass(frozen=True)
class CacheEntry:
    """
    One parsed template.

    Attributes:
        template: Explicit-array parse of the template file.
        xmlns_attributes: Namespace declarations of the root element, in
                          document order.
        root_ns: Qualified name of the operation element inside the Body.
        layout: Names of the envelope, header, body and operation elements.
        operation_template: Compiled sub-template of the operation element.
        header_template: Compiled sub-template of the SOAP Header, if any.
    """

    template: dict[str, Any]
    xmlns_attributes: tuple[XmlnsAttribute, ...]
    root_ns: str
    layout: EnvelopeLayout
    operation_template: TemplateNode | None
    header_template: TemplateNode | None


def _xmlns_attributes(root: Any) -> tuple[XmlnsAttribute, ...]:
    if not isinstance(root, dict):
        return ()
    attributes: dict[str, str] = root.get(ATTRIBUTES_KEY) or {}
    return tuple(
        XmlnsAttribute(name=name, value=value)
        for name, value in attributes.items()
        if name == 'xmlns' or name.startswith('xmlns:')
    )


def build_cache_entry(xml: str) -> CacheEntry:
    """
    Parse template XML into a cache entry.

    Raises:
        XmlParseError: If the XML is not well-formed.
        TemplateStructureError: If the envelope has no Body or no operation.
    """
    template: dict[str, Any] = parse_xml(xml, explicit_array=True)
    layout: EnvelopeLayout = describe_envelope(template)

    return CacheEntry(
        template=template,
        xmlns_attributes=_xmlns_attributes(template[layout.root_name]),
        root_ns=layout.operation_name,
        layout=layout,
        operation_template=compile_template(operation_subtemplate(template, layout)),
        header_template=compile_template(header_subtemplate(template, layout)),
    )


class TemplateCache:
    """
    Filename-keyed cache of parsed SOAP templates.

    Attributes:
        templates_dir: Directory that filenames are resolved against. None
                       means filenames are used as given.
        encoding: Encoding passed to the reader.

    Example:
        >>> cache = TemplateCache(Path('templates'))
        >>> entry = await cache.get_or_load('amendInvolvedParty.xml')
        >>> entry.root_ns
        'ip:AmendInvolvedPartyRequest'
    """

    def __init__(
        self,
        templates_dir: Path | str | None = None,
        encoding: str = 'utf8',
        reader: TemplateReader = get_data,
    ) -> None:
        self.templates_dir: Path | None = Path(templates_dir) if templates_dir is not None else None
        self.encoding: str = encoding
        self._reader: TemplateReader = reader
        self._entries: dict[str, CacheEntry] = {}
        self._in_flight: dict[str, asyncio.Task[CacheEntry]] = {}

    @classmethod
    def from_config(cls, templates: 'TemplatesSection') -> 'TemplateCache':
        """Build a cache from the 'templates' config section."""
        return cls(templates.resolve_directory(), templates.encoding)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, filename: object) -> bool:
        return filename in self._entries

    def _resolve(self, filename: str) -> Path:
        if self.templates_dir is None:
            return Path(filename)
        return self.templates_dir / filename

    async def _load(self, filename: str) -> CacheEntry:
        try:
            path: Path = self._resolve(filename)
            xml: str = await self._reader(path, self.encoding)
            entry: CacheEntry = build_cache_entry(xml)
            self._entries[filename] = entry
            logger.debug('Cached template %r (root %r)', filename, entry.root_ns)
            return entry
        finally:
            self._in_flight.pop(filename, None)

    async def get_or_load(self, filename: str) -> CacheEntry:
        """
        Return the parsed template for ``filename``, loading it on first use.

        Args:
            filename: Template filename, relative to ``templates_dir``.

        Returns:
            The cached entry.

        Raises:
            OSError: If the file cannot be read.
            XmlParseError: If the file is not well-formed XML.
            TemplateStructureError: If the template has no Body or operation.
        """
        entry: CacheEntry | None = self._entries.get(filename)
        if entry is not None:
            return entry

        task: asyncio.Task[CacheEntry] | None = self._in_flight.get(filename)
        if task is None:
            logger.debug('Template cache miss for %r', filename)
            task = asyncio.ensure_future(self._load(filename))
            self._in_flight[filename] = task

        # One cancelled caller must not cancel the load shared with the others
        return await asyncio.shield(task)

    def clear(self) -> None:
        """Drop every cached entry."""
        self._entries.clear()
