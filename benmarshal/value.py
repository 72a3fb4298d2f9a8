"""The four Bencode value kinds.

Wire grammar (canonical form):

    integer      i -? digit+ e        no leading zeros, no -0, fits int64
    byte string  <length>:<bytes>     raw bytes, length in decimal
    list         l value* e
    dictionary   d (string value)* e  keys strictly ascending by bytes

`Value` is used whenever the decode target is not known statically.
"""
from dataclasses import dataclass, field
from typing import Any, ClassVar
from benmarshal.errors import UnsupportedKindError, KeyTypeError

INT64_MIN = -2 ** 63
INT64_MAX = 2 ** 63 - 1
UINT64_MAX = 2 ** 64 - 1

INTEGER_START = ord('i')
LIST_START = ord('l')
DICT_START = ord('d')
END = ord('e')
MINUS = ord('-')
COLON = ord(':')
DIGITS = frozenset(b'0123456789')


class Value:
    kind: ClassVar[str] = 'value'


    def unwrap(self) -> Any:
        raise NotImplementedError


    @staticmethod
    def wrap(obj: Any) -> 'Value':
        if isinstance(obj, Value):
            return obj

        if isinstance(obj, bool):
            return Integer(int(obj))

        if isinstance(obj, int):
            return Integer(obj)

        if isinstance(obj, str):
            return ByteString(obj.encode())

        if isinstance(obj, (bytes, bytearray, memoryview)):
            return ByteString(bytes(obj))

        if isinstance(obj, (list, tuple)):
            return List([Value.wrap(x) for x in obj])

        if isinstance(obj, dict):
            entries: dict[bytes, Value] = {}
            for key, value in obj.items():
                if isinstance(key, str):
                    key = key.encode()
                elif not isinstance(key, bytes):
                    raise KeyTypeError(f'Dict key should be a string, got {type(key).__name__}.')
                entries[key] = Value.wrap(value)
            return Dictionary(entries)

        raise UnsupportedKindError(type(obj).__name__)


@dataclass
class Integer(Value):
    kind: ClassVar[str] = 'integer'

    value: int = 0


    def unwrap(self) -> int:
        return self.value


@dataclass
class ByteString(Value):
    kind: ClassVar[str] = 'byte string'

    value: bytes = b''


    def unwrap(self) -> bytes:
        return bytes(self.value)


@dataclass
class List(Value):
    kind: ClassVar[str] = 'list'

    items: list[Value] = field(default_factory=list)


    def unwrap(self) -> list:
        return [item.unwrap() for item in self.items]


@dataclass
class Dictionary(Value):
    kind: ClassVar[str] = 'dictionary'

    entries: dict[bytes, Value] = field(default_factory=dict)


    def unwrap(self) -> dict:
        return {key: value.unwrap() for key, value in self.entries.items()}


    def __getitem__(self, key) -> Value:
        if isinstance(key, str):
            key = key.encode()
        return self.entries[key]


    def __contains__(self, key) -> bool:
        if isinstance(key, str):
            key = key.encode()
        return key in self.entries


def kind_of_lead(byte: int) -> str:
    if byte == INTEGER_START:
        return Integer.kind
    if byte == LIST_START:
        return List.kind
    if byte == DICT_START:
        return Dictionary.kind
    return ByteString.kind
