"""Client-error mapping for the HTTP intake.

A rejected request gets a 400 whose body has the same ``status``/``reason``
shape as the intake's other replies, so a webhook gateway can log every
response the same way::

    {"status": "rejected", "reason": "...", "field": "ref"}

Usage
-----
Raise from a resource and register the handler on the app::

    app.add_error_handler(InvalidInputError, handle_invalid_input)

"""

from __future__ import annotations

import re
import typing as typ

import falcon

if typ.TYPE_CHECKING:
    import msgspec
    from falcon.asgi import Request, Response

__all__ = ["InvalidInputError", "handle_invalid_input"]

# msgspec appends the failing location, e.g. "... - at `$.repository.full_name`".
_LOCATION = re.compile(r" - at `\$\.?(?P<path>[^`]*)`$")
_MISSING_FIELD = re.compile(r"missing required field `(?P<field>[^`]+)`")


class InvalidInputError(Exception):
    """A request the intake refuses to act on; answered with HTTP 400.

    Attributes
    ----------
    reason
        What is wrong with the request.
    field
        Dotted path of the offending body field, when one is known.

    """

    def __init__(self, reason: str, *, field: str | None = None) -> None:
        """Record the reason and, optionally, the field it concerns."""
        self.reason = reason
        self.field = field
        super().__init__(f"{field}: {reason}" if field else reason)

    @classmethod
    def from_validation(cls, exc: msgspec.ValidationError) -> InvalidInputError:
        """Translate a msgspec validation failure, keeping the field path."""
        message = str(exc)
        field: str | None = None
        if located := _LOCATION.search(message):
            message = message[: located.start()]
            field = located["path"] or None
        if missing := _MISSING_FIELD.search(message):
            prefix = f"{field}." if field else ""
            field = f"{prefix}{missing['field']}"
        return cls(message, field=field)


async def handle_invalid_input(
    _req: Request,
    resp: Response,
    ex: InvalidInputError,
    _params: dict[str, typ.Any],
) -> None:
    """Answer an :class:`InvalidInputError` with a 400 rejection body."""
    media: dict[str, str] = {"status": "rejected", "reason": ex.reason}
    if ex.field is not None:
        media["field"] = ex.field
    resp.status = falcon.HTTP_400
    resp.media = media
