"""Tests for SerializationService and the factory/serializer round trip."""

from __future__ import annotations

import json
from typing import Any

import pytest

from treectl.domain.nodes import BranchEdge, Condition, Loop, SendEmail, SendSms
from treectl.infrastructure.samples import list_samples, load_sample
from treectl.services.factory import ActionFactory
from treectl.services.serialization import SerializationService

NESTED: dict[str, Any] = {
    "kind": "LOOP",
    "iterationCount": 3,
    "subtree": {
        "kind": "CONDITION",
        "predicate": "segment == 'vip'",
        "branches": [
            {
                "label": "Phone",
                "child": {"kind": "SEND_SMS", "label": "Phone", "phoneNumber": "+15550100"},
            },
            {
                "label": "Inner",
                "child": {
                    "kind": "CONDITION",
                    "predicate": "false",
                    "branches": [],
                    "defaultBranchLabel": "Nowhere",
                },
            },
        ],
        "defaultBranchLabel": "Phone",
    },
}


class TestSerialize:
    def test_sms(self, serializer: SerializationService) -> None:
        assert serializer.serialize(SendSms(phone_number="1")) == {
            "kind": "SEND_SMS",
            "phoneNumber": "1",
        }

    def test_email_keeps_label(self, serializer: SerializationService) -> None:
        node = SendEmail(label="Sales", sender="a@example.com", receiver="b@example.com")
        assert serializer.serialize(node) == {
            "kind": "SEND_EMAIL",
            "label": "Sales",
            "sender": "a@example.com",
            "receiver": "b@example.com",
        }

    def test_condition_without_default(self, serializer: SerializationService) -> None:
        node = Condition(
            predicate="true",
            branches=(BranchEdge(label="A", child=SendSms(phone_number="1")),),
        )
        record = serializer.serialize(node)
        assert "defaultBranchLabel" not in record
        assert record["branches"] == [
            {"label": "A", "child": {"kind": "SEND_SMS", "phoneNumber": "1"}}
        ]

    def test_loop(self, serializer: SerializationService) -> None:
        node = Loop(iteration_count=0, subtree=SendSms(phone_number="1"))
        assert serializer.serialize(node) == {
            "kind": "LOOP",
            "iterationCount": 0,
            "subtree": {"kind": "SEND_SMS", "phoneNumber": "1"},
        }

    def test_rejects_non_nodes(self, serializer: SerializationService) -> None:
        with pytest.raises(TypeError):
            serializer.serialize({"kind": "SEND_SMS"})  # type: ignore[arg-type]

    def test_to_json(self, serializer: SerializationService) -> None:
        text = serializer.to_json(SendSms(phone_number="1"), indent=None)
        assert json.loads(text) == {"kind": "SEND_SMS", "phoneNumber": "1"}


class TestRoundTrip:
    def test_nested_record(
        self, factory: ActionFactory, serializer: SerializationService
    ) -> None:
        assert serializer.serialize(factory.create(NESTED)) == NESTED

    def test_nested_phone_number_survives(
        self, factory: ActionFactory, serializer: SerializationService
    ) -> None:
        record = serializer.serialize(factory.create(NESTED))
        leaf = record["subtree"]["branches"][0]["child"]
        assert leaf["phoneNumber"] == "+15550100"

    def test_node_round_trip(
        self, factory: ActionFactory, serializer: SerializationService
    ) -> None:
        tree = factory.create(NESTED)
        assert factory.create(serializer.serialize(tree)) == tree

    @pytest.mark.parametrize("name", list_samples())
    def test_samples_are_canonical(
        self, factory: ActionFactory, serializer: SerializationService, name: str
    ) -> None:
        record = load_sample(name)
        assert serializer.serialize(factory.create(record)) == record
