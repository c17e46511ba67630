import json
from textwrap import indent
from typing import IO, Any

import click

from mapify.collect import collect_grouped, duplicate_groups
from mapify.records import Record, Records, field_key, pretty_record


def option_with_envvar(*args, **kwargs):
    envvar = kwargs["envvar"]
    kwargs["help"] = kwargs["help"] + f" [env: {envvar}]"
    return click.option(*args, **kwargs)


class DuplicateKeysException(click.ClickException):
    def __init__(self, field: str, dupes: dict[str, list[Record]]):
        def pretty_dupe(key: str, records: list[Record]) -> str:
            pretty_records = "\n".join(pretty_record(r) for r in records)
            return f"{key}\n{indent(pretty_records, ' ' * 4)}"

        pretty_dupes = "\n".join(
            pretty_dupe(key, records) for key, records in dupes.items()
        )
        super().__init__(
            f"""\
Found records sharing the same {field!r}.

Duplicate keys:

{indent(pretty_dupes, " " * 4)}
"""
        )


class NonFiniteNumberException(click.ClickException):
    def __init__(self):
        super().__init__(
            "Records contain NaN or Infinity, which cannot be written as JSON."
        )


def keyed_records(
    records: Records, field: str, group: bool, strict: bool
) -> dict[str, Any]:
    grouped = collect_grouped(records, field_key(field))
    if group:
        return grouped

    dupes = duplicate_groups(grouped)
    if strict and len(dupes) > 0:
        raise DuplicateKeysException(field, dupes)

    for dupe_key, dupe_records in dupes.items():
        click.secho(
            f"Found {len(dupe_records)} records with {field}={dupe_key!r}. I kept the last one.",
            fg="yellow",
            err=True,
        )

    # Each group is in input order, so its last record is the one that wins.
    return {k: rs[-1] for k, rs in grouped.items()}


def dump_json(result: dict[str, Any], indent_width: int) -> str:
    try:
        return json.dumps(result, indent=indent_width, allow_nan=False)
    except ValueError as e:
        raise NonFiniteNumberException() from e


@click.command(context_settings={"auto_envvar_prefix": "MAPIFY"})
@click.argument("input", type=click.File("rb"), default="-")
@option_with_envvar(
    "--key",
    "field",
    required=True,
    envvar="MAPIFY_KEY",
    help="The name of the record field to key on. Records that are null get the key '(nil)'. Non-string values are keyed by their JSON text, so 1 and \"1\" share a key.",
)
@option_with_envvar(
    "--group/--no-group",
    default=False,
    envvar="MAPIFY_GROUP",
    help="Map each key to a list of every record with that key, in input order, instead of to a single record.",
)
@option_with_envvar(
    "--strict/--no-strict",
    default=False,
    envvar="MAPIFY_STRICT",
    help="Fail if more than one record has the same key. Without this, the last such record wins. Ignored with --group.",
)
@option_with_envvar(
    "--indent",
    "indent_width",
    type=click.IntRange(min=0),
    default=2,
    envvar="MAPIFY_INDENT",
    help="Indentation of the JSON output.",
)
def main(
    input: IO[bytes],
    field: str,
    group: bool,
    strict: bool,
    indent_width: int,
):
    """
    Turn a JSON array of records into a JSON object keyed by one of their
    fields.

    Reads INPUT, or stdin if INPUT is '-' or missing.
    """
    # Binary stdin streams are not always named.
    description = getattr(input, "name", "<stdin>")
    records = Records.parse(input.read(), description=description)
    result = keyed_records(records, field, group=group, strict=strict)
    click.echo(dump_json(result, indent_width))
