"""
Unit tests for codecs and the Schema entry.

Tests cover:
- Avro binary encoding
- JSON Schema validated encoding
- Codec construction failures
- Build-once codec handles on Schema
- Schema wire conversion
"""

import threading
from unittest.mock import patch

import pytest

from srclient import InvalidRequestError, Reference, Schema, SchemaType
from srclient.codec import AvroCodec, JsonSchemaCodec, build_codec, has_codec_factory

ORDER_JSON_SCHEMA = (
    '{"type": "object", "properties": {"id": {"type": "integer"}}, "required": ["id"]}'
)
NESTED = "[" * 5000 + "]" * 5000


class TestAvroCodec:
    """Tests for AvroCodec."""

    def test_string(self):
        """Strings are length-prefixed UTF-8."""
        codec = AvroCodec('{"type": "string"}')

        data = codec.encode("hello")

        assert data == b"\x0ahello"
        assert codec.decode(data) == "hello"

    def test_int_primitive(self):
        """Bare primitive schemas are accepted."""
        codec = AvroCodec('"int"')

        assert codec.encode(5) == b"\x0a"

    def test_record(self):
        """Records decode back to dictionaries."""
        codec = AvroCodec(
            '{"type": "record", "name": "Order", "fields": ['
            '{"name": "id", "type": "long"}, {"name": "note", "type": "string"}]}'
        )

        datum = {"id": 7, "note": "rush"}

        assert codec.decode(codec.encode(datum)) == datum

    def test_wrong_datum(self):
        """Datums not matching the schema are rejected."""
        codec = AvroCodec('{"type": "string"}')

        with pytest.raises(InvalidRequestError):
            codec.encode(42)


class TestJsonSchemaCodec:
    """Tests for JsonSchemaCodec."""

    def test_encode_compact(self):
        """Valid datums encode as compact JSON."""
        codec = JsonSchemaCodec(ORDER_JSON_SCHEMA)

        assert codec.encode({"id": 1}) == b'{"id":1}'

    def test_decode_validates(self):
        """Decoded datums are validated."""
        codec = JsonSchemaCodec(ORDER_JSON_SCHEMA)

        assert codec.decode(b'{"id": 3}') == {"id": 3}
        with pytest.raises(InvalidRequestError):
            codec.decode(b'{"id": "three"}')

    def test_encode_validates(self):
        """Invalid datums are rejected on encode."""
        codec = JsonSchemaCodec(ORDER_JSON_SCHEMA)

        with pytest.raises(InvalidRequestError):
            codec.encode({})

    def test_decode_bad_json(self):
        """Undecodable bytes are rejected."""
        codec = JsonSchemaCodec(ORDER_JSON_SCHEMA)

        with pytest.raises(InvalidRequestError):
            codec.decode(b"{nope")

    def test_decode_deeply_nested(self):
        """Data nested past the parser's depth limit is rejected."""
        codec = JsonSchemaCodec(ORDER_JSON_SCHEMA)

        with pytest.raises(InvalidRequestError):
            codec.decode(NESTED.encode())


class TestBuildCodec:
    """Tests for build_codec."""

    def test_factories(self):
        """AVRO and JSON have codec factories; PROTOBUF does not."""
        assert has_codec_factory(SchemaType.AVRO)
        assert has_codec_factory(SchemaType.JSON)
        assert not has_codec_factory(SchemaType.PROTOBUF)

    def test_protobuf_has_no_codec(self):
        """PROTOBUF schemas never get a codec."""
        assert build_codec(SchemaType.PROTOBUF, 'syntax = "proto3";') is None

    def test_invalid_avro(self):
        """Schemas the Avro library rejects yield None."""
        assert build_codec(SchemaType.AVRO, '{"type": "nonsense"}') is None

    def test_invalid_json_schema(self):
        """Schemas failing the JSON Schema metaschema yield None."""
        assert build_codec(SchemaType.JSON, '{"type": 12}') is None

    def test_not_json(self):
        """Unparseable text yields None."""
        assert build_codec(SchemaType.JSON, "{nope") is None

    @pytest.mark.parametrize("schema_type", [SchemaType.AVRO, SchemaType.JSON])
    def test_deeply_nested(self, schema_type):
        """Text nested past the parser's depth limit yields None."""
        assert build_codec(schema_type, NESTED) is None


class TestSchemaCodec:
    """Tests for Schema.codec."""

    def test_codec_is_memoized(self):
        """The same handle is returned on every call."""
        schema = Schema(id=1, schema='{"type": "string"}')

        assert schema.codec() is schema.codec()

    def test_failure_is_memoized(self):
        """A failed build is not retried."""
        schema = Schema(id=1, schema='{"type": "nonsense"}')

        with patch("srclient.schema.build_codec", return_value=None) as build:
            assert schema.codec() is None
            assert schema.codec() is None

        assert build.call_count == 1

    def test_built_once_across_threads(self):
        """Concurrent first use builds the codec once."""
        schema = Schema(id=1, schema='{"type": "string"}')
        barrier = threading.Barrier(8)
        results = []

        def use():
            barrier.wait()
            results.append(schema.codec())

        with patch("srclient.schema.build_codec", wraps=build_codec) as build:
            threads = [threading.Thread(target=use) for _ in range(8)]
            for t in threads:
                t.start()
            for t in threads:
                t.join()

        assert build.call_count == 1
        assert len({id(codec) for codec in results}) == 1

    def test_encode_decode(self):
        """Schema delegates encoding to its codec."""
        schema = Schema(id=2, schema='"int"')

        assert schema.decode(schema.encode(21)) == 21

    def test_encode_without_codec(self):
        """Encoding with no codec available is an invalid request."""
        schema = Schema(id=3, schema="message A {}", schema_type=SchemaType.PROTOBUF)

        with pytest.raises(InvalidRequestError):
            schema.encode({"a": 1})

    def test_equality_ignores_codec(self):
        """Entries compare by content whether or not a codec was built."""
        built = Schema(id=1, schema='"int"', subject="s", version=1)
        built.codec()

        assert built == Schema(id=1, schema='"int"', subject="s", version=1)


class TestSchemaWireFormat:
    """Tests for Schema.to_dict and Schema.from_dict."""

    def test_avro_omits_type(self):
        """AVRO entries omit schemaType and empty references."""
        schema = Schema(id=1, schema='"int"', subject="test2", version=1)

        assert schema.to_dict() == {"subject": "test2", "version": 1, "id": 1, "schema": '"int"'}

    def test_other_types_and_references(self):
        """Non-AVRO entries carry schemaType; references are listed."""
        schema = Schema(
            id=4,
            schema="message A {}",
            schema_type=SchemaType.PROTOBUF,
            subject="a",
            version=1,
            references=(Reference("b.proto", "b", 1),),
        )

        data = schema.to_dict()

        assert data["schemaType"] == "PROTOBUF"
        assert data["references"] == [{"name": "b.proto", "subject": "b", "version": 1}]

    def test_from_id_lookup_body(self):
        """ID lookup bodies carry no id, subject or version."""
        schema = Schema.from_dict({"schema": '{"type":"string"}'}, schema_id=9)

        assert schema.id == 9
        assert schema.schema_type == SchemaType.AVRO
        assert schema.subject is None
        assert schema.version is None

    def test_from_version_body(self):
        """Version bodies carry everything."""
        schema = Schema.from_dict(
            {"subject": "s", "version": 2, "id": 5, "schema": "{}", "schemaType": "JSON"}
        )

        assert (schema.id, schema.subject, schema.version) == (5, "s", 2)
        assert schema.schema_type == SchemaType.JSON
