from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from pydantic import TypeAdapter, ValidationError

from skilltree.core.errors import DataIntegrityError
from skilltree.data.default_catalog import DEFAULT_EDGES, DEFAULT_NODES
from skilltree.models.catalog import Catalog
from skilltree.schemas import CatalogEdgeIn, CatalogNodeIn

logger = logging.getLogger(__name__)

_NODES = TypeAdapter(list[CatalogNodeIn])
_EDGES = TypeAdapter(list[CatalogEdgeIn])


def load_catalog(
    records: Iterable[Mapping[str, object]],
    edges: Iterable[Mapping[str, object]] | None = None,
) -> Catalog:
    """Validate raw catalog records and build the Catalog.

    Any malformed record, dangling prerequisite, mismatched edge or cycle
    raises DataIntegrityError; the engine must not start on such a catalog.
    """
    try:
        nodes = _NODES.validate_python(list(records))
        edge_models = _EDGES.validate_python(list(edges)) if edges is not None else None
    except ValidationError as exc:
        logger.error("Rejected catalog: %d invalid field(s)", exc.error_count())
        raise DataIntegrityError(f"malformed catalog: {exc}") from exc

    try:
        catalog = Catalog(
            (n.to_domain() for n in nodes),
            [e.to_domain() for e in edge_models] if edge_models is not None else None,
        )
    except DataIntegrityError as exc:
        logger.error("Rejected catalog: %s", exc)
        raise

    logger.info("Catalog loaded: %d nodes, %d edges", len(catalog), len(catalog.edges))
    return catalog


def default_catalog() -> Catalog:
    return load_catalog(DEFAULT_NODES, DEFAULT_EDGES)
