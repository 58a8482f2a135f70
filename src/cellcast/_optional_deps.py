from __future__ import annotations

from collections.abc import Sequence
from importlib import import_module
from types import ModuleType
from typing import Any


def build_optional_dependency_error(
    *,
    feature: str,
    extras: Sequence[str],
    missing_module: str | None,
) -> ModuleNotFoundError:
    c_extras = ",".join(dict.fromkeys(extras))
    c_missing = (
        f"Missing optional dependency `{missing_module}`."
        if missing_module
        else "Missing optional dependency."
    )
    return ModuleNotFoundError(
        f"{feature} is unavailable. {c_missing} "
        f'Install extras with `pip install "cellcast[{c_extras}]"` '
        f"or sync in development with `pdm sync -G dev -G {c_extras}`.",
        name=missing_module,
    )


def _check_missing_is_required(
    missing_module: str | None, required_modules: Sequence[str]
) -> bool:
    if not required_modules:
        return True
    # "openpyxl.cell" missing is still openpyxl missing.
    c_missing_root = (missing_module or "").split(".")[0]
    return any(c_missing_root == _req.split(".")[0] for _req in required_modules)


def import_optional_module(
    *,
    module_name: str,
    package: str | None,
    feature: str,
    extras: Sequence[str],
    required_modules: Sequence[str],
) -> ModuleType:
    """Import ``module_name``, explaining which extra provides it if missing.

    Only a missing module listed in ``required_modules`` is rewritten into the
    install hint; any other ``ModuleNotFoundError`` is a real bug and is
    re-raised untouched.
    """
    try:
        return import_module(module_name, package=package)
    except ModuleNotFoundError as exc:
        if _check_missing_is_required(exc.name, required_modules):
            raise build_optional_dependency_error(
                feature=feature,
                extras=extras,
                missing_module=exc.name,
            ) from exc
        raise


def import_optional_attr(
    *,
    module_name: str,
    attr_name: str,
    package: str,
    feature: str,
    extras: Sequence[str],
    required_modules: Sequence[str],
) -> Any:
    module = import_optional_module(
        module_name=module_name,
        package=package,
        feature=feature,
        extras=extras,
        required_modules=required_modules,
    )
    return getattr(module, attr_name)
