"""Markdown frontmatter parsing and serialisation.

Files keep dates as local wall-clock strings (``2026-01-03 20:00:00``). Reading
must never reinterpret them in another timezone and writing must emit them
unquoted, so the YAML loader and dumper used here are tailored for that:

* the loader drops PyYAML's implicit timestamp resolver, dates come back as
  the literal strings found in the file;
* the dumper treats ``datetime`` values as their own type and renders them as
  plain ``YYYY-MM-DD HH:MM:SS`` scalars;
* collections nested two levels deep or more are written in flow style, which
  is how posts store ``categories: [[Parent, Child]]``.
"""
from __future__ import annotations

import logging
import re
from datetime import date, datetime
from typing import Any, Dict, Optional, Tuple

import frontmatter
import yaml
from frontmatter.default_handlers import YAMLHandler

from cms.errors import InvalidDateError


logger = logging.getLogger(__name__)

LOCAL_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DATE_FIELDS = ("date", "updated")
FLOW_DEPTH = 2

_local_date_pattern = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}$")
_legacy_formats = ("%Y-%m-%d %H:%M", "%Y-%m-%d", "%Y/%m/%d %H:%M:%S", "%Y/%m/%d %H:%M", "%Y/%m/%d")
_timestamp_tag = "tag:yaml.org,2002:timestamp"


class FrontmatterLoader(yaml.SafeLoader):
    pass


FrontmatterLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _timestamp_tag]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


class FlowList(list):
    pass


class FlowDict(dict):
    pass


class FrontmatterDumper(yaml.SafeDumper):
    def increase_indent(self, flow: bool = False, indentless: bool = False) -> None:
        # Block sequences under a key are indented ("  - item"), matching existing posts.
        return super().increase_indent(flow, False)

    def ignore_aliases(self, data: Any) -> bool:
        # Shared objects (e.g. the same datetime for date and updated) must not become anchors.
        return True


def _represent_datetime(dumper: yaml.SafeDumper, data: datetime) -> yaml.ScalarNode:
    return dumper.represent_scalar(_timestamp_tag, to_local_naive(data).strftime(LOCAL_DATE_FORMAT))


def _represent_flow_list(dumper: yaml.SafeDumper, data: FlowList) -> yaml.SequenceNode:
    return dumper.represent_sequence("tag:yaml.org,2002:seq", data, flow_style=True)


def _represent_flow_dict(dumper: yaml.SafeDumper, data: FlowDict) -> yaml.MappingNode:
    return dumper.represent_mapping("tag:yaml.org,2002:map", data, flow_style=True)


FrontmatterDumper.add_representer(datetime, _represent_datetime)
FrontmatterDumper.add_representer(FlowList, _represent_flow_list)
FrontmatterDumper.add_representer(FlowDict, _represent_flow_dict)


def _apply_flow_style(value: Any, depth: int) -> Any:
    if isinstance(value, dict):
        mapping = {key: _apply_flow_style(item, depth + 1) for key, item in value.items()}
        return FlowDict(mapping) if depth >= FLOW_DEPTH else mapping
    if isinstance(value, (list, tuple)):
        items = [_apply_flow_style(item, depth + 1) for item in value]
        return FlowList(items) if depth >= FLOW_DEPTH else items
    return value


class FrontmatterHandler(YAMLHandler):
    """python-frontmatter handler wired to the loader and dumper above."""

    def load(self, fm: str, **kwargs: object) -> Any:
        return yaml.load(fm, Loader=FrontmatterLoader)

    def export(self, metadata: Dict[str, Any], **kwargs: object) -> str:
        prepared = _apply_flow_style({k: v for k, v in metadata.items() if v is not None}, 0)
        text = yaml.dump(
            prepared,
            Dumper=FrontmatterDumper,
            sort_keys=False,
            allow_unicode=True,
            default_flow_style=False,
            width=float("inf"),
        )
        return text.strip()


_handler = FrontmatterHandler()


def parse(text: str, *, keep_body: bool = False) -> Tuple[Dict[str, Any], str]:
    """Split a markdown file into its frontmatter mapping and body.

    The body is stripped unless ``keep_body`` is set, in which case it comes back
    as stored with only the blank lines after the closing delimiter removed.
    """
    post = frontmatter.loads(text, handler=_handler)
    if keep_body:
        return dict(post.metadata), raw_body(text)
    return dict(post.metadata), post.content.strip()


def raw_body(text: str) -> str:
    stripped = text.lstrip()
    if not _handler.detect(stripped):
        return text
    try:
        _, body = _handler.split(stripped)
    except ValueError:
        return text
    return body.lstrip("\r\n")


def serialize(metadata: Dict[str, Any], body: str) -> str:
    """Render frontmatter and body back into file text.

    ``date``/``updated`` strings in local format are emitted as dates; any other
    value is written as-is. Callers wanting strict validation run
    :func:`coerce_dates` with ``strict=True`` first.
    """
    post = frontmatter.Post(body, handler=_handler)
    post.metadata.update(coerce_dates(metadata, strict=False))
    return frontmatter.dumps(post, handler=_handler) + "\n"


def to_local_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def _parse_known(text: str) -> Optional[datetime]:
    if _local_date_pattern.match(text):
        try:
            return datetime.strptime(text, LOCAL_DATE_FORMAT)
        except ValueError:
            return None
    if "T" in text:
        candidate = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
        try:
            return to_local_naive(datetime.fromisoformat(candidate))
        except ValueError:
            return None
    return None


def parse_local_date(value: Any) -> datetime:
    """Best-effort date parsing for read paths. Never raises."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return datetime.now()

    if isinstance(value, datetime):
        return to_local_naive(value)

    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time())

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value)
        except (OverflowError, OSError, ValueError):
            logger.warning("Timestamp out of range '%s', using current time", value)
            return datetime.now()

    text = str(value).strip()
    parsed = _parse_known(text)
    if parsed is not None:
        return parsed

    for fmt in _legacy_formats:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        logger.warning("Ambiguous date format '%s', parsed with %s", value, fmt)
        return parsed

    logger.error("Invalid date format '%s', using current time", value)
    return datetime.now()


def parse_strict_date(field: str, value: Any) -> datetime:
    """Date parsing for write paths: local format or ISO 8601, nothing else."""
    if isinstance(value, datetime):
        return to_local_naive(value)
    if isinstance(value, str):
        parsed = _parse_known(value.strip())
        if parsed is not None:
            return parsed
    logger.error("Failed to parse %s: '%s'", field, value)
    raise InvalidDateError(field, value)


def coerce_dates(metadata: Dict[str, Any], *, strict: bool) -> Dict[str, Any]:
    """Return a copy with ``date``/``updated`` strings turned into datetimes.

    Strict mode accepts the local format and ISO 8601 and raises
    :class:`InvalidDateError` otherwise. Lenient mode only converts values in
    the local format and leaves everything else untouched.
    """
    result = dict(metadata)
    for field in DATE_FIELDS:
        value = result.get(field)
        if not isinstance(value, str) or not value.strip():
            continue
        if strict:
            result[field] = parse_strict_date(field, value)
        elif _local_date_pattern.match(value.strip()):
            parsed = _parse_known(value.strip())
            if parsed is not None:
                result[field] = parsed
    return result


def format_local_date(value: datetime) -> str:
    return to_local_naive(value).strftime(LOCAL_DATE_FORMAT)
