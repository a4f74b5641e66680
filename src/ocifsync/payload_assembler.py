# ocifsync/payload_assembler.py
"""
Payload namespace assembly.

Given a SOAP template filename and a plain payload, produce the
namespace-qualified payload for the operation element together with the
root's namespace declarations and the operation element's name. Template
files are loaded through a shared TemplateCache.
"""

import logging
from typing import Any

from .models import AssembledPayload
from .namespace_injector import inject_namespace
from .template_cache import CacheEntry, TemplateCache
from .utils.config_loader import TemplatesSection
from .utils.logger import log_error

logger: logging.Logger = logging.getLogger(__name__)

TEMPLATE_PARSE_ERROR: str = 'err parse XML template to JSON'


class PayloadNamespaceAssembler:
    """
    Combines the template cache with the namespace injector.

    Attributes:
        cache: The template cache used to load templates.
    """

    def __init__(self, cache: TemplateCache | None = None) -> None:
        self.cache: TemplateCache = cache if cache is not None else TemplateCache.from_config(TemplatesSection())

    async def load(self, filename: str) -> CacheEntry:
        """
        Load a template through the cache.

        Any load failure is logged once and re-raised unchanged.
        """
        try:
            return await self.cache.get_or_load(filename)
        except Exception as e:
            log_error(TEMPLATE_PARSE_ERROR, e)
            raise

    async def assemble(self, filename: str | None, payload: Any) -> AssembledPayload:
        """
        Namespace-qualify ``payload`` against the operation element of a template.

        Args:
            filename: Template filename, resolved by the cache.
            payload: Plain payload keyed by local names.

        Returns:
            AssembledPayload with the qualified payload, the root's xmlns
            declarations and the operation element name. A missing filename
            or payload yields an empty result without touching the cache.

        Raises:
            OSError: If the template file cannot be read.
            XmlParseError: If the template is not well-formed XML.
            TemplateStructureError: If the template has no Body or operation.
        """
        if filename is None or payload is None:
            return AssembledPayload()

        entry: CacheEntry = await self.load(filename)
        payload_with_ns: dict[str, Any] = inject_namespace(entry.operation_template, payload)
        logger.debug(
            'Assembled %d top-level keys for %r using %r',
            len(payload_with_ns),
            entry.root_ns,
            filename,
        )

        return AssembledPayload(
            payload_with_ns=payload_with_ns,
            xmlns_attributes=list(entry.xmlns_attributes),
            root_ns=entry.root_ns,
        )


_default_assembler: PayloadNamespaceAssembler | None = None


def get_default_assembler() -> PayloadNamespaceAssembler:
    """Return the process-wide assembler backed by the bundled templates."""
    global _default_assembler
    if _default_assembler is None:
        _default_assembler = PayloadNamespaceAssembler()
    return _default_assembler


async def inject_payload_namespace(filename: str | None, payload: Any) -> AssembledPayload:
    """Assemble ``payload`` with the process-wide assembler."""
    return await get_default_assembler().assemble(filename, payload)
