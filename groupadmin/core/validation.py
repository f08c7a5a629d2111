"""
Structural validation of incoming data against a rule set.

A rule set is a pydantic model class; the fields and their constraints are
the rules. Validation never raises, it reports violations:

```
violations = validate({"name": "ed", "role": "EDITOR"}, GroupCreateRequest)
if violations:
    ...
```
"""

from typing import Any

from pydantic import BaseModel, ValidationError


class Violation(BaseModel):
    """
    A single field-level rule violation.
    """

    field: str
    message: str


def _field_path(location: tuple[int | str, ...]) -> str:
    return ".".join(str(x) for x in location) or "__root__"


def validate(data: Any, rules: type[BaseModel]) -> list[Violation]:
    """
    Check `data` against the rule set `rules`.

    Parameters
    ----------
    data: Any
        A mapping, a pydantic model, or any object exposing the rule set's
        fields as attributes.
    rules: type[BaseModel]
        The pydantic model describing the rules.

    Returns
    -------
    list[Violation]
        Empty when `data` is valid.
    """
    if isinstance(data, BaseModel):
        data = data.model_dump()

    try:
        if isinstance(data, dict):
            rules.model_validate(data)
        else:
            rules.model_validate(data, from_attributes=True)
    except ValidationError as e:
        return [
            Violation(field=_field_path(error["loc"]), message=error["msg"])
            for error in e.errors()
        ]

    return []


def parse(data: Any, rules: type[BaseModel]) -> BaseModel:
    """
    Convert already-validated `data` to an instance of the rule set.
    """
    if isinstance(data, BaseModel):
        data = data.model_dump()

    if isinstance(data, dict):
        return rules.model_validate(data)

    return rules.model_validate(data, from_attributes=True)
