"""
Codec for shareable collection links.

A collection travels in the URL fragment:

    #inv=<token>,<token>,...

One token per instance:

    token := itemId [ ":" mutationCode ] [ ":" count ]

Example:
    #inv=1::2,2:g,7
    -> item 1 with no mutation x2, item 2 with mutation "g", item 7

The mutation field is emitted when there is a code OR count > 1 (empty
code keeps count in the third field). Count is emitted only when > 1.

With annotations enabled, weight and age follow count as fourth and
fifth fields ("3:g::4.5:2"). Trailing empty fields are trimmed, so links
without annotations are identical in both modes.

Decoding is best-effort: malformed tokens, unknown items and unknown
mutation codes are dropped one at a time and never abort the decode.
"""

import logging
import math
from collections.abc import Iterable
from urllib.parse import parse_qsl, quote, urlsplit, urlunsplit

from petshelf.config import FIELD_SEPARATOR, FRAGMENT_KEY, MAX_LINK_TOKENS, TOKEN_SEPARATOR
from petshelf.models.catalog import Catalog
from petshelf.models.collection import (
    CollectionInstance,
    ResolvedInstance,
    parse_age,
    parse_weight,
)

logger = logging.getLogger(__name__)

# Characters left unescaped in the fragment value
_FRAGMENT_SAFE = FIELD_SEPARATOR + TOKEN_SEPARATOR


class LinkCodec:
    """Encode collection snapshots to link fragments and back."""

    def __init__(self, catalog: Catalog, include_annotations: bool = False) -> None:
        self._catalog = catalog
        self._include_annotations = include_annotations

    @property
    def include_annotations(self) -> bool:
        return self._include_annotations

    # ------------------------------------------------------------------
    # Encoding
    # ------------------------------------------------------------------

    def encode_token(self, instance: CollectionInstance | ResolvedInstance) -> str:
        """Encode one instance as a minimal token."""
        if isinstance(instance, ResolvedInstance):
            instance = instance.instance

        code = self._catalog.mutation_code(instance.mutation_id)
        count = str(instance.count) if instance.count > 1 else ""
        fields = [str(instance.item_id), code, count]

        if self._include_annotations:
            fields.append(_format_weight(instance.weight))
            fields.append("" if instance.age is None else str(instance.age))

        while len(fields) > 1 and not fields[-1]:
            fields.pop()
        return FIELD_SEPARATOR.join(fields)

    def encode(self, instances: Iterable[CollectionInstance | ResolvedInstance]) -> str:
        """Encode instances as comma-joined tokens, order preserved."""
        return TOKEN_SEPARATOR.join(self.encode_token(instance) for instance in instances)

    def to_fragment(self, instances: Iterable[CollectionInstance | ResolvedInstance]) -> str:
        """Build the fragment (without "#") for a collection: "inv=<tokens>"."""
        return f"{FRAGMENT_KEY}={quote(self.encode(instances), safe=_FRAGMENT_SAFE)}"

    def share_url(
        self,
        base_url: str,
        instances: Iterable[CollectionInstance | ResolvedInstance],
    ) -> str:
        """Full share link: `base_url` with its fragment replaced."""
        parts = urlsplit(base_url)
        return urlunsplit(parts._replace(fragment=self.to_fragment(instances)))

    # ------------------------------------------------------------------
    # Decoding
    # ------------------------------------------------------------------

    def decode_token(self, token: str) -> CollectionInstance | None:
        """
        Decode one token.

        Returns None when the item id is not a finite integer or is not
        in the catalog. Unknown mutation codes decode as no mutation.
        """
        parts = token.split(FIELD_SEPARATOR)

        item_id = _parse_item_id(parts[0])
        if item_id is None or item_id not in self._catalog:
            return None

        mutation_id = None
        if len(parts) > 1 and parts[1]:
            mutation_id = self._catalog.mutation_id_for_code(parts[1])

        count = _parse_count(parts[2]) if len(parts) > 2 else 1

        weight = None
        age = None
        if self._include_annotations:
            weight = parse_weight(parts[3]) if len(parts) > 3 and parts[3] else None
            age = parse_age(parts[4]) if len(parts) > 4 and parts[4] else None

        return CollectionInstance(
            item_id=item_id,
            mutation_id=mutation_id,
            count=count,
            weight=weight,
            age=age,
        )

    def decode(self, tokens: str) -> list[CollectionInstance]:
        """
        Decode a comma-joined token string.

        Bad tokens are skipped; decoding continues with the next one.
        """
        raw_tokens = [t.strip() for t in tokens.split(TOKEN_SEPARATOR)]
        raw_tokens = [t for t in raw_tokens if t]

        if len(raw_tokens) > MAX_LINK_TOKENS:
            logger.warning(
                "share_link_truncated",
                extra={"token_count": len(raw_tokens), "max_tokens": MAX_LINK_TOKENS},
            )
            raw_tokens = raw_tokens[:MAX_LINK_TOKENS]

        decoded: list[CollectionInstance] = []
        dropped: list[str] = []
        for token in raw_tokens:
            instance = self.decode_token(token)
            if instance is None:
                dropped.append(token)
            else:
                decoded.append(instance)

        if dropped:
            logger.debug(
                "share_link_tokens_dropped",
                extra={"dropped_count": len(dropped), "tokens": dropped[:10]},
            )
        return decoded

    def from_fragment(self, fragment: str | None) -> list[CollectionInstance]:
        """
        Decode a URL fragment, a "#inv=..." string, or a full share URL.

        The fragment is parsed as a query string; "inv" is the only key
        read. Missing or empty input decodes to an empty collection.
        """
        if not fragment:
            return []
        if "#" in fragment:
            fragment = fragment.split("#", 1)[1]

        for key, value in parse_qsl(fragment, keep_blank_values=True):
            if key == FRAGMENT_KEY:
                return self.decode(value)
        return []


def _parse_item_id(raw: str) -> int | None:
    """Item ids must be finite, integral numbers ("12", "1e1"); else None."""
    try:
        value = float(raw)
    except ValueError:
        return None
    if not math.isfinite(value) or not value.is_integer():
        return None
    return int(value)


def _parse_count(raw: str) -> int:
    """Counts default to 1 when missing, malformed or below 1."""
    try:
        count = int(raw.strip())
    except ValueError:
        return 1
    return count if count >= 1 else 1


def _format_weight(weight: float | None) -> str:
    if weight is None:
        return ""
    return f"{weight:.2f}".rstrip("0").rstrip(".")
