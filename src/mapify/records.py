import json
from textwrap import indent
from typing import Any, Callable, Self

import click
from pydantic import RootModel, ValidationError

# Key given to records that are JSON `null`.
NIL_KEY = "(nil)"

Record = dict[str, Any] | None


def pretty_record(record: Record) -> str:
    return json.dumps(record, sort_keys=True)


class InvalidRecordsException(click.ClickException):
    def __init__(self, description: str, error: ValidationError):
        pretty_errors = "\n".join(
            f"{'.'.join(str(loc) for loc in e['loc']) or '(root)'}: {e['msg']}"
            for e in error.errors()
        )
        super().__init__(
            f"""\
Invalid records in {description}. Expected a JSON array of objects.

{indent(pretty_errors, " " * 4)}
"""
        )


class MissingKeyFieldException(click.ClickException):
    def __init__(self, field: str, record: dict[str, Any]):
        super().__init__(
            f"""\
Record has no field {field!r}:

{indent(pretty_record(record), " " * 4)}
"""
        )


class Records(RootModel[list[Record]]):
    @classmethod
    def parse(cls, text: str | bytes, description: str = "input") -> Self:
        try:
            return cls.model_validate_json(text)
        except ValidationError as e:
            raise InvalidRecordsException(description, e) from e

    def __iter__(self):  # type: ignore[override]
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)


def key_text(value: Any) -> str:
    if isinstance(value, str):
        return value

    return json.dumps(value, sort_keys=True, separators=(",", ":"))


def field_key(field: str) -> Callable[[Record], str]:
    def key(record: Record) -> str:
        if record is None:
            return NIL_KEY

        if field not in record:
            raise MissingKeyFieldException(field, record)

        return key_text(record[field])

    return key
