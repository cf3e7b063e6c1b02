"""Service registry: which repositories feed which deployed services.

The registry is a JSON or YAML document mapping service names to repository
and build metadata::

    {
      "blog": {
        "repo": "acme/blog",
        "url": "git@github.com:acme/blog.git",
        "ref_policy": "latest-tag"
      },
      "docs-preview": {
        "repo": "acme/docs",
        "url": "git@github.com:acme/docs.git",
        "ref_policy": "tracked-branch",
        "branch": "preview",
        "build_context": "site",
        "dockerfile": "site/Dockerfile"
      }
    }

Load it once per process and query it per event::

    >>> from quayside.registry import load_registry
    >>> registry = load_registry("/config/services.json")
    >>> registry.lookup_by_tag_push("acme/blog").name
    'blog'

"""

from __future__ import annotations

from .loader import load_registry
from .lookup import Registry
from .models import RefPolicy, ServiceDefinition, ServiceEntry
from .schema import build_registry_schema, write_registry_schema
from .validation import validate_registry

__all__ = [
    "RefPolicy",
    "Registry",
    "ServiceDefinition",
    "ServiceEntry",
    "build_registry_schema",
    "load_registry",
    "validate_registry",
    "write_registry_schema",
]
