"""Tag assignment and tag-group hierarchy for navigation."""

from auto_openapi.config import Config, HierarchyMode
from auto_openapi.docs.registry import DocRegistry
from auto_openapi.routing.tree import RouteNode

FLAT_TAG = "All"


def _is_param_or_wildcard(segment: str) -> bool:
    return segment.startswith("{") and segment.endswith("}")


def container_tag(pattern: str) -> str:
    """Leading literal segments of ``pattern`` joined by ``/``, or ``default``."""
    constants = []
    for seg in (s for s in pattern.strip("/").split("/") if s):
        if _is_param_or_wildcard(seg):
            break
        constants.append(seg)
    return "/".join(constants) if constants else "default"


def fallback_module(pattern: str) -> str:
    first = container_tag(pattern).split("/")[0]
    return (first or "module") + ".py"


def sanitize_module(raw: str) -> str:
    name = raw.rsplit(".", 1)[-1] if not raw.endswith(".py") else raw
    if not name.strip():
        return "module"
    return name if name.endswith(".py") else name + ".py"


def module_tag(node: RouteNode, pattern: str, docs: DocRegistry) -> str:
    """Explicit module name, else the handler's module, else one from the path.

    Handler-based inference is best effort: decorated or dynamically built
    handlers may report an unhelpful module.
    """
    explicit = docs.module_for(node)
    if explicit:
        return sanitize_module(explicit)
    if node.handler is not None:
        module = getattr(node.handler, "__module__", None)
        if module and module != "__main__":
            return sanitize_module(module)
    return fallback_module(pattern)


def tag_for(node: RouteNode, pattern: str, cfg: Config, docs: DocRegistry) -> str:
    if cfg.hierarchy_mode == HierarchyMode.MODULE_FILE:
        return module_tag(node, pattern, docs)
    if cfg.hierarchy_mode == HierarchyMode.NONE:
        return FLAT_TAG
    return container_tag(pattern)


def prefix_set(tags: set[str]) -> list[str]:
    """Every prefix of every tag: ``a/b`` gives ``a`` and ``a/b``."""
    out: dict[str, None] = {}
    for tag in tags:
        parts = [p for p in tag.split("/") if p]
        for i in range(len(parts)):
            out["/".join(parts[: i + 1])] = None
    return list(out)


def direct_children(prefix: str, tags: set[str]) -> list[str]:
    """Tags exactly one level below ``prefix``, plus ``prefix`` itself if it is a tag."""
    pfx = prefix + "/" if prefix else ""
    kids = [
        t for t in tags
        if t.startswith(pfx) and t[len(pfx):] and "/" not in t[len(pfx):]
    ]
    if prefix in tags:
        kids.append(prefix)
    return sorted(set(kids))


def tag_description(tag: str, cfg: Config) -> str:
    if tag in cfg.tag_descriptions:
        return cfg.tag_descriptions[tag]
    if cfg.hierarchy_mode == HierarchyMode.MODULE_FILE:
        return f"Endpoints from {tag}"
    if cfg.hierarchy_mode == HierarchyMode.NONE:
        return "All endpoints" if tag == FLAT_TAG else "Endpoints"
    return f"Endpoints under /{tag}"


def build_tags_and_groups(tags: set[str], cfg: Config) -> tuple[list[dict] | None, list[dict] | None]:
    """Return the ``tags`` list and ``x-tagGroups`` list (either may be None)."""
    if not tags:
        return None, None

    tag_list = [{"name": t, "description": tag_description(t, cfg)} for t in sorted(tags)]

    if cfg.hierarchy_mode == HierarchyMode.PATH_PREFIX:
        prefixes = sorted(prefix_set(tags), key=lambda p: (p.count("/"), p))
        groups = [{"name": p, "tags": direct_children(p, tags)} for p in prefixes]
    elif cfg.hierarchy_mode == HierarchyMode.MODULE_FILE:
        groups = [{"name": t, "tags": [t]} for t in sorted(tags)]
    else:
        groups = None
    return tag_list, groups
