"""
Explicit state for hosts that wire pipeline stages together.

A host such as a node-graph editor keeps documents, templates and resolved
contents per graph node. :py:class:`ProceduralContext` holds them in one
object that is passed to whoever needs it, instead of module-level state.
:py:class:`RemapCache` memoizes remap payloads by content.
"""

import hashlib
import json
import logging
from typing import Callable, Optional, Union

from attrs import define, field

from psd_remapper.document.nodes import DocumentTree
from psd_remapper.models import (
    ContainerContext,
    ContainerDefinition,
    MappingContext,
    TemplateMetadata,
    TransformedPayload,
)
from psd_remapper.strategy import LayoutStrategy

logger = logging.getLogger(__name__)

CacheKey = tuple[str, str, str]


@define
class ProceduralContext:
    """
    Registries keyed by host node identity.

    .. py:attribute:: documents

        Node id to :py:class:`~psd_remapper.document.DocumentTree`.

    .. py:attribute:: templates

        Node id to :py:class:`~psd_remapper.models.TemplateMetadata`.

    .. py:attribute:: resolved

        Node id to handle id to :py:class:`~psd_remapper.models.MappingContext`.
    """

    documents: dict[str, DocumentTree] = field(factory=dict)
    templates: dict[str, TemplateMetadata] = field(factory=dict)
    resolved: dict[str, dict[str, MappingContext]] = field(factory=dict)

    def register_document(self, node_id: str, document: DocumentTree) -> None:
        self.documents[node_id] = document

    def register_template(self, node_id: str, template: TemplateMetadata) -> bool:
        """
        Store `template`; return False when an equal one is already stored.
        """
        if self.templates.get(node_id) == template:
            return False
        self.templates[node_id] = template
        return True

    def register_resolved(
        self, node_id: str, handle_id: str, context: MappingContext
    ) -> bool:
        """
        Store `context`; return False when an equal one is already stored.
        """
        record = self.resolved.setdefault(node_id, {})
        if record.get(handle_id) == context:
            return False
        record[handle_id] = context
        return True

    def unregister(self, node_id: str) -> None:
        """Forget everything registered under `node_id`."""
        self.documents.pop(node_id, None)
        self.templates.pop(node_id, None)
        self.resolved.pop(node_id, None)

    def get_resolved(self, node_id: str, handle_id: str) -> Optional[MappingContext]:
        return self.resolved.get(node_id, {}).get(handle_id)


def strategy_hash(strategy: Optional[LayoutStrategy]) -> str:
    """Stable digest of a strategy, ``none`` without one."""
    if strategy is None:
        return "none"
    data = json.dumps(strategy.to_dict(), sort_keys=True, separators=(",", ":"))
    return hashlib.sha1(data.encode("utf-8")).hexdigest()


@define
class RemapCache:
    """
    Payload cache keyed by ``(source_id, target_id, strategy_hash)``.

    The source key covers the source document identity, the source container
    and a digest of its layers, so re-resolved content with different
    geometry never hits a stale entry.
    """

    entries: dict[CacheKey, TransformedPayload] = field(factory=dict)
    hits: int = 0
    misses: int = 0

    @staticmethod
    def make_key(
        context: MappingContext,
        target: Union[ContainerDefinition, ContainerContext],
        strategy: Optional[LayoutStrategy],
        source_id: Optional[str] = None,
    ) -> CacheKey:
        target_id = (
            target.container_id if isinstance(target, ContainerContext) else target.id
        )
        content = hashlib.sha1(repr(context.layers).encode("utf-8")).hexdigest()
        source_key = "%s:%s:%r:%s" % (
            source_id,
            context.container.container_id,
            context.container.bounds,
            content,
        )
        return (
            source_key,
            "%s:%r" % (target_id, target.bounds),
            strategy_hash(strategy),
        )

    def get_or_compute(
        self,
        context: MappingContext,
        target: Union[ContainerDefinition, ContainerContext],
        strategy: Optional[LayoutStrategy],
        source_id: Optional[str],
        compute: Callable[[], TransformedPayload],
    ) -> TransformedPayload:
        key = self.make_key(context, target, strategy, source_id)
        payload = self.entries.get(key)
        if payload is not None:
            self.hits += 1
            return payload
        self.misses += 1
        payload = compute()
        self.entries[key] = payload
        return payload

    def clear(self) -> None:
        self.entries.clear()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self.entries)
