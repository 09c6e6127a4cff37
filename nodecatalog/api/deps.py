from fastapi import Request

from nodecatalog.services.nodes.catalog import NodeCatalog


def get_catalog(request: Request) -> NodeCatalog:
    """The catalog owned by the running application."""
    return request.app.state.catalog
