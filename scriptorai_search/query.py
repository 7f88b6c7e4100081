"""Query syntax for scriptorai-search.

Queries use the same syntax as the search box of the Scriptorai site, so a
link such as ``/search?q=+saturn -mars`` means the same thing in both
places. The query string is taken as typed; nothing is escaped.

Syntax:
    word            Optional term; a document matches if any term matches.
    +word           Required term.
    -word           Prohibited term.
    title:word      Term restricted to one field (title, text, page).
    word^3          Term score multiplied by an integer boost.
    sat*            Wildcard term, matched against indexed terms unstemmed.
    saturn~1        Fuzzy term, indexed terms within edit distance 1.

Classes:
    Presence: Whether a clause is optional, required or prohibited.
    Clause: One parsed query term with its modifiers.

Functions:
    parse_query: Parse a query string into clauses.
"""

import re
from dataclasses import dataclass
from enum import Enum

from scriptorai_search.errors import QuerySyntaxError

SEARCH_FIELDS = ("title", "text", "page")

_TERM_RE = re.compile(r"^(?P<term>[^~^]*)(?P<modifiers>(?:[~^][^~^]*)*)$")
_MODIFIER_RE = re.compile(r"([~^])([^~^]*)")


class Presence(str, Enum):
    """How a clause constrains matching documents."""

    OPTIONAL = "optional"
    REQUIRED = "required"
    PROHIBITED = "prohibited"


@dataclass(frozen=True)
class Clause:
    """One term of a parsed query.

    Attributes:
        term: The term as typed, without presence, field or modifiers.
        fields: Fields the term is matched against.
        presence: Optional, required or prohibited.
        boost: Score multiplier.
        edit_distance: Maximum edit distance for fuzzy matching (0 = exact).
    """

    term: str
    fields: tuple[str, ...] = SEARCH_FIELDS
    presence: Presence = Presence.OPTIONAL
    boost: int = 1
    edit_distance: int = 0

    @property
    def is_wildcard(self) -> bool:
        return "*" in self.term


def parse_query(query: str, fields: tuple[str, ...] = SEARCH_FIELDS) -> list[Clause]:
    """Parse a query string into clauses.

    Args:
        query: The query as typed.
        fields: Fields a ``field:`` prefix may name.

    Returns:
        One Clause per whitespace-separated term, in query order.

    Raises:
        QuerySyntaxError: On an unknown field, a missing term or a
            non-numeric boost or edit distance.

    Example:
        >>> [c.presence.value for c in parse_query("+saturn -mars jupiter")]
        ['required', 'prohibited', 'optional']
        >>> parse_query("title:saturn^2")[0].boost
        2
    """
    return [_parse_clause(query, raw, fields) for raw in query.split()]


def _parse_clause(query: str, raw: str, fields: tuple[str, ...]) -> Clause:
    presence = Presence.OPTIONAL
    if raw[0] == "+":
        presence = Presence.REQUIRED
        raw = raw[1:]
    elif raw[0] == "-":
        presence = Presence.PROHIBITED
        raw = raw[1:]

    clause_fields = fields
    if ":" in raw:
        field_name, raw = raw.split(":", 1)
        if field_name.lower() not in fields:
            raise QuerySyntaxError(
                query, f"unrecognised field '{field_name}', possible fields: {', '.join(fields)}"
            )
        clause_fields = (field_name.lower(),)

    match = _TERM_RE.match(raw)
    term = match.group("term") if match else ""
    if not term:
        raise QuerySyntaxError(query, "expecting a term")

    boost = 1
    edit_distance = 0
    for kind, value in _MODIFIER_RE.findall(match.group("modifiers")) if match else []:
        if not value.isdigit():
            what = "boost" if kind == "^" else "edit distance"
            raise QuerySyntaxError(query, f"{what} must be numeric, got '{value}'")
        if kind == "^":
            boost = int(value)
        else:
            edit_distance = int(value)

    return Clause(
        term=term,
        fields=clause_fields,
        presence=presence,
        boost=boost,
        edit_distance=edit_distance,
    )
