"""Human-readable build report."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

import jinja2

from .differ import ChangeSet
from .manifest import PatchManifest
from .params import BuildParameters

logger = logging.getLogger(__name__)

_REPORT_TEMPLATE = """\
Platform: {{ params.platform }}
Version: {{ params.build_version }}
Built: {{ built_at }}

-- Parameters --
HashType: {{ params.hash_type.value }}
CompressOption: {{ params.compress_option.value }}
ForceRebuild: {{ params.force_rebuild }}
AppendHash: {{ params.append_hash }}
DisableTypeMetadata: {{ params.disable_type_metadata }}
IgnoreTypeMetadataChanges: {{ params.ignore_type_metadata_changes }}

-- Artifacts ({{ manifest.artifacts | length }}) --
{% for record in manifest.artifacts %}
{{ record.name }} {{ record.hash }} {{ record.size }}{% if record.depends %} <- {{ record.depends | join(", ") }}{% endif %}

{% endfor %}

-- Updated in this version ({{ updated | length }}) --
{% for name in updated %}
{{ name }}
{% endfor %}

-- Removed ({{ changes.removed | length }}) --
{% for name in changes.removed %}
{{ name }}
{% endfor %}

-- Variants ({{ manifest.variants | length }}) --
{% for variant in manifest.variants %}
{{ variant }}
{% endfor %}
"""

_env = jinja2.Environment(
    undefined=jinja2.StrictUndefined,
    trim_blocks=True,
    keep_trailing_newline=True,
    autoescape=False,
)


def render_report(
    params: BuildParameters,
    manifest: PatchManifest,
    changes: ChangeSet,
    *,
    built_at: datetime | None = None,
) -> str:
    """Render the report text for a finished build."""
    updated = [r.name for r in manifest.artifacts if r.version == params.build_version]
    template = _env.from_string(_REPORT_TEMPLATE)
    return template.render(
        params=params,
        manifest=manifest,
        changes=changes,
        updated=updated,
        built_at=(built_at or datetime.now()).isoformat(timespec="seconds"),
    )


def write_report(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.unlink(missing_ok=True)
    path.write_text(text, encoding="utf-8")
    logger.info("Wrote build report to %s", path)
