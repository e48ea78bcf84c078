from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Sequence

from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError
from eth_utils import keccak, to_checksum_address

from starosca_indexer.app.domain.errors import EventDecodeError


@dataclass(frozen=True)
class _EventSpec:
    name: str
    signature: str
    topic0: bytes
    indexed: tuple[tuple[str, str], ...]  # (name, type) in topic order
    data_names: tuple[str, ...]
    data_types: tuple[str, ...]


class AbiEventDecoder:
    """
    ABI-based decoder for a selected set of events of one contract.

    It:
    - reads the contract ABI (a plain ABI list or a build artifact with `abi`),
    - derives topic0 = keccak("EventName(type1,type2,...)") per selected event,
    - decodes indexed args from topics[1:] (static types only),
    - decodes the remaining args from `data` with eth_abi.

    Addresses come out EIP-55 checksummed; integers as Python ints.
    """

    def __init__(self, *, abi_path: Path, event_names: Iterable[str]) -> None:
        events = load_event_abis(abi_path)
        self._by_topic0: dict[bytes, _EventSpec] = {}

        for event_name in event_names:
            entries = events.get(event_name, [])
            if len(entries) != 1:
                raise ValueError(
                    f"{abi_path.name}: expected exactly one event {event_name!r}, "
                    f"found {len(entries)} (known events: {sorted(events)})"
                )
            spec = _build_spec(entries[0])
            self._by_topic0[spec.topic0] = spec

    @property
    def topics(self) -> tuple[bytes, ...]:
        return tuple(self._by_topic0)

    def handles(self, topic0: bytes | None) -> bool:
        return topic0 is not None and bytes(topic0) in self._by_topic0

    def decode(self, *, topics: Sequence[bytes], data: bytes) -> tuple[str, dict[str, Any]]:
        """
        Decode a log into (event_name, args). Arg names are the ABI names.

        Raises EventDecodeError for an unknown topic0, a topic count that does
        not match the ABI, or data that does not decode.
        """
        if not topics:
            raise EventDecodeError("Log has no topics (anonymous events are not supported)")

        topic0 = bytes(topics[0])
        spec = self._by_topic0.get(topic0)
        if spec is None:
            raise EventDecodeError(f"Unknown topic0 0x{topic0.hex()}")

        indexed_topics = list(topics[1:])
        if len(indexed_topics) != len(spec.indexed):
            raise EventDecodeError(
                f"{spec.name}: expected {len(spec.indexed)} indexed topics, "
                f"got {len(indexed_topics)}"
            )

        args: dict[str, Any] = {
            name: _decode_topic(typ, topic)
            for (name, typ), topic in zip(spec.indexed, indexed_topics, strict=True)
        }

        if spec.data_types:
            try:
                values = abi_decode(list(spec.data_types), bytes(data))
            except (DecodingError, ValueError, TypeError) as exc:
                raise EventDecodeError(f"{spec.name}: malformed log data ({exc})") from exc

            for name, typ, value in zip(spec.data_names, spec.data_types, values, strict=True):
                args[name] = to_checksum_address(value) if typ == "address" else value

        return spec.name, args


def load_event_abis(abi_path: Path) -> dict[str, list[dict[str, Any]]]:
    """Event entries of an ABI file grouped by event name (overloads share a key)."""
    payload = json.loads(abi_path.read_text(encoding="utf-8"))
    if isinstance(payload, dict):
        payload = payload.get("abi")
    if not isinstance(payload, list):
        raise ValueError(f"{abi_path}: expected an ABI list or an artifact with an 'abi' list")

    events: dict[str, list[dict[str, Any]]] = {}
    for entry in payload:
        if isinstance(entry, dict) and entry.get("type") == "event":
            events.setdefault(str(entry.get("name")), []).append(entry)
    return events


def _build_spec(event_abi: dict[str, Any]) -> _EventSpec:
    name = str(event_abi["name"])
    inputs: list[dict[str, Any]] = list(event_abi.get("inputs", []))
    signature = f"{name}({','.join(i['type'] for i in inputs)})"

    indexed = tuple((i["name"], i["type"]) for i in inputs if i.get("indexed"))
    for _, typ in indexed:
        # Dynamic indexed values are only present as their keccak hash.
        if typ in ("string", "bytes") or typ.endswith("]"):
            raise ValueError(f"Indexed dynamic type {typ!r} is not supported ({signature})")

    data_inputs = [i for i in inputs if not i.get("indexed")]
    return _EventSpec(
        name=name,
        signature=signature,
        topic0=keccak(text=signature),
        indexed=indexed,
        data_names=tuple(i["name"] for i in data_inputs),
        data_types=tuple(i["type"] for i in data_inputs),
    )


def _decode_topic(typ: str, topic: bytes) -> Any:
    word = bytes(topic)
    if len(word) != 32:
        raise EventDecodeError(f"Topic must be 32 bytes, got {len(word)}")

    if typ == "address":
        if any(word[:12]):
            raise EventDecodeError(f"Topic is not a padded address: 0x{word.hex()}")
        return to_checksum_address(word[12:])
    if typ == "bool":
        return word[-1] != 0
    if typ.startswith("uint"):
        return int.from_bytes(word, "big")
    if typ.startswith("int"):
        return int.from_bytes(word, "big", signed=True)
    return word
