"""HCL loading: render Jinja2 templates, parse HCL, expand variables."""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Callable
from pathlib import Path
from typing import Any

import hcl2
import jinja2

from .params import BuildParameters

logger = logging.getLogger(__name__)

_VAR_PATTERN = re.compile(r"\$\$\{|\$\{(?:env\.(\w+)|(\w+))\}")

_BUILTIN_VARS: dict[str, Callable[[], str]] = {
    "CWD": os.getcwd,
}

def load(
    file: str | Path,
    *,
    context: dict[str, Any] | None = None,
    platform: str | None = None,
) -> dict[str, Any]:
    """Load and parse a single HCL file.

    The text is rendered as a Jinja2 template with ``context`` first, then
    ``${env.NAME}``, ``${CWD}`` and ``${PLATFORM}`` references in string
    values are expanded. ``$${`` produces a literal ``${``.
    """
    file = Path(file)
    text = _render(file, context if context is not None else {})

    builtins = dict(_BUILTIN_VARS)
    if platform is not None:
        builtins["PLATFORM"] = lambda: platform

    return _interpolate(hcl2.loads(text), builtins)


def _render(file: Path, context: dict[str, Any]) -> str:
    env = jinja2.Environment(
        undefined=jinja2.StrictUndefined,
        keep_trailing_newline=True,
        autoescape=False,
    )
    try:
        return env.from_string(file.read_text()).render(context)
    except jinja2.TemplateError as exc:
        raise ValueError(f"{file}: {exc}") from exc


def _interpolate(obj: Any, builtins: dict[str, Callable[[], str]]) -> Any:
    if isinstance(obj, dict):
        return {k: _interpolate(v, builtins) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_interpolate(item, builtins) for item in obj]
    if isinstance(obj, str) and "${" in obj:
        return _VAR_PATTERN.sub(lambda m: _expand_var(m, builtins), obj)
    return obj


def _expand_var(match: re.Match, builtins: dict[str, Callable[[], str]]) -> str:  # type: ignore[type-arg]
    """Expand a single ${...} variable reference."""
    if match.group(0) == "$${":
        return "${"
    env_name = match.group(1)
    builtin_name = match.group(2)
    if env_name is not None:
        if env_name not in os.environ:
            logger.warning("Environment variable '%s' is not set", env_name)
        return os.environ.get(env_name, "")
    if builtin_name in builtins:
        return builtins[builtin_name]()
    logger.warning("Unknown variable '%s'", builtin_name)
    return match.group(0)


def load_parameters(
    file: str | Path,
    *,
    context: dict[str, Any] | None = None,
    **overrides: Any,
) -> BuildParameters:
    """Read BuildParameters from the ``build`` block of an HCL file.

    Keyword overrides take precedence over values from the file. Relative
    paths are resolved against the file's directory.
    """
    file = Path(file)
    data = load(file, context=context, platform=overrides.get("platform"))

    blocks = data.get("build", [])
    if len(blocks) > 1:
        raise ValueError(f"{file}: more than one build block")
    attrs = {k: v for k, v in (blocks[0] if blocks else {}).items() if not k.startswith("__")}
    attrs.update(overrides)

    base = file.parent.resolve()
    for key in ("output_root", "project_root"):
        if key in attrs:
            path = Path(attrs[key])
            attrs[key] = path if path.is_absolute() else base / path
    attrs.setdefault("project_root", base)

    logger.debug("Loaded build parameters from %s", file)
    return BuildParameters(**attrs)
