"""Identifier formatting applied to records before they are batched."""

from collections.abc import Callable, Iterable, Mapping

from influxreport.core.models import Field, Record, Tag

ContextFormatter = Callable[[list[str], str], str]
MetricFormatter = Callable[[str, str, str, Mapping[str, str]], str]
KeyFormatter = Callable[[str], str]


def _join_names(names: Iterable[str]) -> str:
    return ".".join(name.strip() for name in names if name and name.strip())


class Formatter:
    """Formats measurement names, tag keys and field keys.

    Each step can be replaced with a hook. After a hook runs, the built-in
    normalizations apply: ``lowercase`` lowercases identifiers and
    ``replace_space`` substitutes spaces (an empty string removes them).
    With no hooks and no normalization the formatter passes records through
    unchanged. Tag values and field values are never touched.

    Args:
        context_formatter: ``(context_stack, context_name) -> str``.
        metric_formatter: ``(context, name, unit, tags) -> str``.
        tag_key_formatter: ``(key) -> str``.
        field_key_formatter: ``(key) -> str``.
        lowercase: Lowercase all identifiers.
        replace_space: Replacement for spaces in identifiers, or None to keep them.
    """

    def __init__(
        self,
        context_formatter: ContextFormatter | None = None,
        metric_formatter: MetricFormatter | None = None,
        tag_key_formatter: KeyFormatter | None = None,
        field_key_formatter: KeyFormatter | None = None,
        lowercase: bool = False,
        replace_space: str | None = None,
    ) -> None:
        self.context_formatter = context_formatter
        self.metric_formatter = metric_formatter
        self.tag_key_formatter = tag_key_formatter
        self.field_key_formatter = field_key_formatter
        self.lowercase = lowercase
        self.replace_space = replace_space

    def normalize(self, identifier: str) -> str:
        """Apply the built-in normalizations to an identifier."""
        if self.lowercase:
            identifier = identifier.lower()
        if self.replace_space is not None:
            identifier = identifier.replace(" ", self.replace_space)
        return identifier

    def format_context_name(self, context_stack: list[str], context_name: str) -> str:
        """Return the name of a context nested in ``context_stack``."""
        if self.context_formatter is not None:
            return self.context_formatter(list(context_stack), context_name)
        return _join_names([*context_stack, context_name])

    def format_metric_name(
        self,
        context: str,
        name: str,
        unit: str,
        tags: Mapping[str, str] | None = None,
    ) -> str:
        """Return the measurement name for a metric reported in ``context``."""
        if self.metric_formatter is not None:
            return self.metric_formatter(context, name, unit, dict(tags or {}))
        return _join_names([context, name])

    def format_tag_key(self, key: str) -> str:
        if self.tag_key_formatter is not None:
            key = self.tag_key_formatter(key)
        return self.normalize(key)

    def format_field_key(self, key: str) -> str:
        if self.field_key_formatter is not None:
            key = self.field_key_formatter(key)
        return self.normalize(key)

    def format_record(self, record: Record) -> Record:
        """Return a new record with formatted name, tag keys and field keys."""
        return Record(
            name=self.normalize(record.name),
            tags=[Tag(self.format_tag_key(t.key), t.value) for t in record.tags],
            fields=[Field(self.format_field_key(f.key), f.value) for f in record.fields],
            timestamp=record.timestamp,
            precision=record.precision,
        )


class DefaultFormatter(Formatter):
    """Formatter with lowercase identifiers and spaces replaced by underscores."""

    def __init__(
        self,
        context_formatter: ContextFormatter | None = None,
        metric_formatter: MetricFormatter | None = None,
        tag_key_formatter: KeyFormatter | None = None,
        field_key_formatter: KeyFormatter | None = None,
        lowercase: bool = True,
        replace_space: str | None = "_",
    ) -> None:
        super().__init__(
            context_formatter=context_formatter,
            metric_formatter=metric_formatter,
            tag_key_formatter=tag_key_formatter,
            field_key_formatter=field_key_formatter,
            lowercase=lowercase,
            replace_space=replace_space,
        )
