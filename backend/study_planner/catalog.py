"""Curriculum catalog: an immutable, validated set of study modules.

The bundled catalog lives in ``data/curriculum.json``. It is read once at
startup; schema violations raise :class:`CatalogError` there and nowhere else.
Referential problems (unknown prerequisites, cycles, template names the
variable builder never produces) are tolerated by the engine, so they are only
reported as warnings.
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from .config import get_settings
from .models import StudyModule
from .templates import compile_template
from .variables import TEMPLATE_VARIABLE_NAMES

logger = logging.getLogger(__name__)

CATALOG_PACKAGE = "study_planner"
CATALOG_RESOURCE = ("data", "curriculum.json")


class CatalogError(ValueError):
    """Raised when catalog data does not satisfy its schema."""


class Catalog:
    """Read-only module registry, passed explicitly to the engine."""

    __slots__ = ("_modules", "_index", "_version")

    def __init__(self, modules: Iterable[StudyModule], *, version: str = "unversioned") -> None:
        ordered: Tuple[StudyModule, ...] = tuple(modules)
        index: Dict[str, StudyModule] = {}
        for module in ordered:
            if module.id in index:
                raise CatalogError(f"Duplicate module id: {module.id}")
            index[module.id] = module
        self._modules = ordered
        self._index: Mapping[str, StudyModule] = MappingProxyType(index)
        self._version = version

    @property
    def modules(self) -> Tuple[StudyModule, ...]:
        return self._modules

    @property
    def version(self) -> str:
        return self._version

    @property
    def ids(self) -> Tuple[str, ...]:
        return tuple(module.id for module in self._modules)

    def get(self, module_id: str) -> Optional[StudyModule]:
        return self._index.get(module_id)

    def __contains__(self, module_id: object) -> bool:
        return module_id in self._index

    def __iter__(self) -> Iterator[StudyModule]:
        return iter(self._modules)

    def __len__(self) -> int:
        return len(self._modules)

    def __repr__(self) -> str:
        return f"Catalog(version={self._version!r}, modules={len(self._modules)})"


def catalog_from_payload(payload: Union[Mapping[str, Any], List[Any]]) -> Catalog:
    """Build a catalog from decoded JSON (a module list or ``{"version", "modules"}``)."""
    if isinstance(payload, list):
        version, raw_modules = "unversioned", payload
    elif isinstance(payload, Mapping):
        version = str(payload.get("version", "unversioned"))
        raw_modules = payload.get("modules")
    else:
        raise CatalogError("Catalog payload must be a list of modules or an object with a 'modules' list.")
    if not isinstance(raw_modules, list):
        raise CatalogError("Catalog payload is missing its 'modules' list.")

    modules: List[StudyModule] = []
    for position, raw in enumerate(raw_modules):
        try:
            modules.append(StudyModule.model_validate(raw))
        except ValidationError as exc:
            label = raw.get("id", f"#{position}") if isinstance(raw, Mapping) else f"#{position}"
            raise CatalogError(f"Catalog module {label} is invalid: {exc}") from exc

    catalog = Catalog(modules, version=version)
    for warning in validate_catalog(catalog):
        logger.warning("Catalog %s: %s", catalog.version, warning)
    return catalog


def load_catalog(path: Optional[Union[str, Path]] = None) -> Catalog:
    """Load the bundled catalog, or the JSON file at ``path``."""
    try:
        if path is not None:
            text = Path(path).read_text(encoding="utf-8-sig")
        else:
            resource = resources.files(CATALOG_PACKAGE)
            for part in CATALOG_RESOURCE:
                resource = resource / part
            text = resource.read_text(encoding="utf-8-sig")
    except OSError as exc:
        raise CatalogError(f"Unable to read catalog: {exc}") from exc

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise CatalogError(f"Catalog is not valid JSON: {exc}") from exc

    catalog = catalog_from_payload(payload)
    logger.info("Loaded curriculum catalog %s with %d modules", catalog.version, len(catalog))
    return catalog


@lru_cache
def default_catalog() -> Catalog:
    """Process-wide catalog, honouring ``STUDY_PLANNER_CATALOG_PATH``."""
    return load_catalog(get_settings().catalog_path)


def validate_catalog(catalog: Catalog) -> List[str]:
    """Describe referential problems the engine will tolerate at runtime."""
    warnings: List[str] = []
    known_variables = set(TEMPLATE_VARIABLE_NAMES)

    for module in catalog:
        for prerequisite in module.prerequisite_ids:
            if prerequisite == module.id:
                warnings.append(f"module {module.id} lists itself as a prerequisite")
            elif prerequisite not in catalog:
                warnings.append(f"module {module.id} references unknown prerequisite {prerequisite}")

        unknown: set[str] = set()
        for source in module.template_fields():
            template = compile_template(source)
            unknown.update(template.placeholder_names() - known_variables)
            unknown.update(template.block_names() - known_variables)
        if unknown:
            warnings.append(f"module {module.id} uses unknown template variables: {', '.join(sorted(unknown))}")

    warnings.extend(_cycle_warnings(catalog))
    return warnings


def _cycle_warnings(catalog: Catalog) -> List[str]:
    visiting: set[str] = set()
    visited: set[str] = set()
    cycles: List[str] = []

    def visit(module_id: str, path: List[str]) -> None:
        if module_id in visited:
            return
        if module_id in visiting:
            cycle_path = path[path.index(module_id) :] + [module_id]
            cycles.append(f"prerequisite cycle detected: {' -> '.join(cycle_path)}")
            return
        module = catalog.get(module_id)
        if module is None:
            return
        visiting.add(module_id)
        path.append(module_id)
        for prerequisite in module.prerequisite_ids:
            if prerequisite != module_id:
                visit(prerequisite, path)
        path.pop()
        visiting.discard(module_id)
        visited.add(module_id)

    for module_id in catalog.ids:
        visit(module_id, [])
    return cycles


__all__ = [
    "Catalog",
    "CatalogError",
    "catalog_from_payload",
    "default_catalog",
    "load_catalog",
    "validate_catalog",
]
