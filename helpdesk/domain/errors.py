from pydantic.alias_generators import to_camel


class HelpdeskError(Exception):
    pass


class NotFoundError(HelpdeskError):
    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.entity_id = entity_id


class FieldValidationError(HelpdeskError):
    """Rejected payload. `errors` is a list of {"field", "message"} dicts."""

    def __init__(self, errors: list[dict[str, str]]):
        super().__init__("; ".join(f"{e['field']}: {e['message']}" for e in errors))
        self.errors = errors

    @classmethod
    def single(cls, field: str, message: str) -> "FieldValidationError":
        return cls([{"field": field, "message": message}])


def reject_nulls(changes: dict, required: frozenset[str]) -> None:
    """Raise for every key of `changes` that is None but backs a NOT NULL column."""
    nulls = sorted(k for k in required.intersection(changes) if changes[k] is None)
    if nulls:
        raise FieldValidationError([{"field": to_camel(k), "message": "may not be null"} for k in nulls])
