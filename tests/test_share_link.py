import logging

import pytest

from petshelf.config import MAX_LINK_TOKENS
from petshelf.models.catalog import Catalog, ItemDefinition, MutationDefinition
from petshelf.models.collection import CollectionInstance
from petshelf.parsers.share_link import LinkCodec
from petshelf.services.collection_store import CollectionStore


def _triples(instances: list[CollectionInstance]) -> list[tuple[int, int | None, int]]:
    return [(i.item_id, i.mutation_id, i.count) for i in instances]


class TestEncodeToken:
    def test_single_plain_item_is_just_the_id(self, codec: LinkCodec) -> None:
        assert codec.encode_token(CollectionInstance(item_id=7)) == "7"

    def test_count_keeps_empty_mutation_field(self, codec: LinkCodec) -> None:
        assert codec.encode_token(CollectionInstance(item_id=7, count=3)) == "7::3"

    def test_mutation_without_count(self, codec: LinkCodec) -> None:
        assert codec.encode_token(CollectionInstance(item_id=7, mutation_id=9)) == "7:g"

    def test_mutation_with_count(self, codec: LinkCodec) -> None:
        token = codec.encode_token(CollectionInstance(item_id=7, mutation_id=9, count=4))
        assert token == "7:g:4"

    def test_weight_and_age_not_encoded_by_default(self, codec: LinkCodec) -> None:
        instance = CollectionInstance(item_id=7, weight=2.5, age=3)
        assert codec.encode_token(instance) == "7"

    def test_accepts_resolved_instances(self, codec: LinkCodec, store: CollectionStore) -> None:
        store.add(2, 9)
        assert codec.encode(store.snapshot()) == "2:g"


class TestEncode:
    def test_tokens_joined_in_order(self, codec: LinkCodec) -> None:
        instances = [
            CollectionInstance(item_id=8),
            CollectionInstance(item_id=1, count=2),
            CollectionInstance(item_id=2, mutation_id=9),
        ]
        assert codec.encode(instances) == "8,1::2,2:g"

    def test_empty_collection(self, codec: LinkCodec) -> None:
        assert codec.encode([]) == ""
        assert codec.to_fragment([]) == "inv="

    def test_fragment(self, codec: LinkCodec) -> None:
        fragment = codec.to_fragment([CollectionInstance(item_id=1, count=2)])
        assert fragment == "inv=1::2"

    def test_fragment_escapes_unsafe_codes(self) -> None:
        catalog = Catalog(
            [ItemDefinition(id=1, name="Dog", rarity_tier="Common")],
            [MutationDefinition(id=1, name="Odd", code="a&b")],
        )
        codec = LinkCodec(catalog)
        fragment = codec.to_fragment([CollectionInstance(item_id=1, mutation_id=1)])

        assert fragment == "inv=1:a%26b"
        assert _triples(codec.from_fragment(fragment)) == [(1, 1, 1)]

    def test_share_url_replaces_fragment(self, codec: LinkCodec) -> None:
        url = codec.share_url(
            "https://pets.example.com/shelf/#inv=99",
            [CollectionInstance(item_id=2, mutation_id=9)],
        )
        assert url == "https://pets.example.com/shelf/#inv=2:g"


class TestDecode:
    def test_decodes_all_fields(self, codec: LinkCodec) -> None:
        decoded = codec.decode("1::2,2:g,7:s:5")
        assert _triples(decoded) == [(1, None, 2), (2, 9, 1), (7, 3, 5)]

    def test_unknown_code_decodes_as_no_mutation(self, codec: LinkCodec) -> None:
        decoded = codec.decode("5:zz:2")
        assert decoded == [CollectionInstance(item_id=5, mutation_id=None, count=2)]

    def test_unknown_item_dropped(self, codec: LinkCodec) -> None:
        assert _triples(codec.decode("999,1")) == [(1, None, 1)]

    @pytest.mark.parametrize("token", ["abc", "", ":g", "NaN", "inf", "1.5", "-"])
    def test_malformed_item_id_dropped(self, codec: LinkCodec, token: str) -> None:
        assert _triples(codec.decode(f"{token},2")) == [(2, None, 1)]

    @pytest.mark.parametrize("count", ["", "x", "0", "-3", "2.5"])
    def test_invalid_count_defaults_to_one(self, codec: LinkCodec, count: str) -> None:
        assert _triples(codec.decode(f"1::{count}")) == [(1, None, 1)]

    def test_whitespace_and_empty_tokens_skipped(self, codec: LinkCodec) -> None:
        assert _triples(codec.decode(" 1 ,, 2:g ,")) == [(1, None, 1), (2, 9, 1)]

    def test_bad_token_does_not_abort_rest(self, codec: LinkCodec) -> None:
        decoded = codec.decode("1,garbage:::,999:g,2:g:3")
        assert _triples(decoded) == [(1, None, 1), (2, 9, 3)]

    def test_extra_fields_ignored_without_annotations(self, codec: LinkCodec) -> None:
        decoded = codec.decode("1:g:2:4.5:3")
        assert decoded == [CollectionInstance(item_id=1, mutation_id=9, count=2)]

    def test_numeric_id_forms(self, codec: LinkCodec) -> None:
        assert _triples(codec.decode("1e0,08")) == [(1, None, 1), (8, None, 1)]

    def test_dropped_tokens_logged(
        self, codec: LinkCodec, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.DEBUG, logger="petshelf.parsers.share_link"):
            codec.decode("1,999,abc")

        records = [r for r in caplog.records if r.getMessage() == "share_link_tokens_dropped"]
        assert len(records) == 1
        assert records[0].dropped_count == 2

    def test_token_cap(self, codec: LinkCodec) -> None:
        tokens = ",".join(["1"] * (MAX_LINK_TOKENS + 5))
        assert len(codec.decode(tokens)) == MAX_LINK_TOKENS


class TestFragment:
    @pytest.mark.parametrize("fragment", [None, "", "#", "#inv=", "other=1"])
    def test_empty_fragments(self, codec: LinkCodec, fragment: str | None) -> None:
        assert codec.from_fragment(fragment) == []

    def test_hash_prefix_optional(self, codec: LinkCodec) -> None:
        assert codec.from_fragment("#inv=1") == codec.from_fragment("inv=1")

    def test_full_url(self, codec: LinkCodec) -> None:
        decoded = codec.from_fragment("https://pets.example.com/?x=1#inv=2:g:2")
        assert _triples(decoded) == [(2, 9, 2)]

    def test_percent_decoding(self, codec: LinkCodec) -> None:
        assert _triples(codec.from_fragment("inv=1%3Ag%3A2%2C2")) == [(1, 9, 2), (2, None, 1)]

    def test_other_keys_ignored(self, codec: LinkCodec) -> None:
        assert _triples(codec.from_fragment("theme=dark&inv=1&x=y")) == [(1, None, 1)]


class TestRoundTrip:
    def test_round_trip_preserves_order_and_fields(
        self, codec: LinkCodec, catalog: Catalog
    ) -> None:
        instances = [
            CollectionInstance(item_id=12, mutation_id=4, count=1),
            CollectionInstance(item_id=1, count=7),
            CollectionInstance(item_id=20, mutation_id=3, count=2),
            CollectionInstance(item_id=1, mutation_id=9),
            CollectionInstance(item_id=5),
        ]
        decoded = codec.from_fragment(codec.to_fragment(instances))
        assert decoded == instances

    def test_round_trip_through_store(self, codec: LinkCodec, store: CollectionStore) -> None:
        store.add(1)
        store.add(1)
        store.add(2, 9)
        store.set_weight(1, "3.5")

        decoded = codec.decode(codec.encode(store.instances()))

        assert _triples(decoded) == [(1, None, 2), (2, 9, 1)]
        # Weight is a session-only annotation
        assert decoded[0].weight is None


class TestAnnotations:
    def test_encodes_weight_and_age(self, annotated_codec: LinkCodec) -> None:
        instance = CollectionInstance(item_id=3, mutation_id=9, weight=4.5, age=2)
        assert annotated_codec.encode_token(instance) == "3:g::4.5:2"

    def test_trailing_empty_fields_trimmed(self, annotated_codec: LinkCodec) -> None:
        assert annotated_codec.encode_token(CollectionInstance(item_id=7)) == "7"
        assert annotated_codec.encode_token(CollectionInstance(item_id=7, count=3)) == "7::3"
        assert annotated_codec.encode_token(CollectionInstance(item_id=7, weight=10.0)) == "7:::10"
        assert annotated_codec.encode_token(CollectionInstance(item_id=7, age=0)) == "7::::0"

    def test_decodes_weight_and_age(self, annotated_codec: LinkCodec) -> None:
        decoded = annotated_codec.decode("1:g:2:3.14159:4.7,2::::-1,5:::abc")
        assert decoded == [
            CollectionInstance(item_id=1, mutation_id=9, count=2, weight=3.14, age=4),
            CollectionInstance(item_id=2),
            CollectionInstance(item_id=5),
        ]

    def test_round_trip(self, annotated_codec: LinkCodec) -> None:
        instances = [
            CollectionInstance(item_id=1, count=2, weight=0.25),
            CollectionInstance(item_id=2, mutation_id=9, age=11),
            CollectionInstance(item_id=5),
        ]
        assert annotated_codec.decode(annotated_codec.encode(instances)) == instances

    def test_oversized_annotations_do_not_abort_decode(self, annotated_codec: LinkCodec) -> None:
        decoded = annotated_codec.decode(f"1:::1e307,5::::{'9' * 5000},2")
        assert decoded == [
            CollectionInstance(item_id=1),
            CollectionInstance(item_id=5),
            CollectionInstance(item_id=2),
        ]
