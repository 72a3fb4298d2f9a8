import dataclasses
from typing import Any, Mapping, Optional
from benmarshal.errors import IntegerOverflowError, KeyTypeError, NestingDepthError, UnsupportedKindError
from benmarshal.profile import ProfileCache, profiles as default_profiles
from benmarshal.value import INT64_MIN, UINT64_MAX, Value, Integer, ByteString, List, Dictionary


def is_zero(value: Any) -> bool:
    if value is None:
        return True

    if isinstance(value, (bool, int)):
        return value == 0

    if isinstance(value, (str, bytes, bytearray, memoryview, list, tuple, Mapping)):
        return len(value) == 0

    if isinstance(value, Integer):
        return value.value == 0

    if isinstance(value, ByteString):
        return len(value.value) == 0

    if isinstance(value, List):
        return len(value.items) == 0

    if isinstance(value, Dictionary):
        return len(value.entries) == 0

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return all(is_zero(getattr(value, f.name)) for f in dataclasses.fields(value))

    return False


class Encoder:
    def __init__(self, profiles: Optional[ProfileCache] = None):
        self.profiles = default_profiles if profiles is None else profiles
        self.buffer = bytearray()


    def encode(self, value: Any) -> bytes:
        self.buffer.clear()
        try:
            self._encode(value)
        except RecursionError:
            raise NestingDepthError('Value nests too deep to encode') from None
        return bytes(self.buffer)


    def _encode(self, value: Any):
        # bool first: it is an int subclass
        if isinstance(value, bool):
            self.buffer += b'i1e' if value else b'i0e'

        elif isinstance(value, int):
            self._encode_int(value)

        elif isinstance(value, str):
            self._encode_bytes(value.encode())

        elif isinstance(value, (bytes, bytearray, memoryview)):
            self._encode_bytes(value)

        elif isinstance(value, (list, tuple)):
            self._encode_list(value)

        elif isinstance(value, Mapping):
            self._encode_dict(value.items())

        elif isinstance(value, Value):
            self._encode_value(value)

        elif dataclasses.is_dataclass(value) and not isinstance(value, type):
            self._encode_record(value)

        elif value is None:
            raise UnsupportedKindError('NoneType', 'None has no bencode representation.')

        else:
            raise UnsupportedKindError(type(value).__name__)


    def _encode_value(self, value: Value):
        if isinstance(value, Integer):
            self._encode_int(value.value)
        elif isinstance(value, ByteString):
            self._encode_bytes(value.value)
        elif isinstance(value, List):
            self._encode_list(value.items)
        elif isinstance(value, Dictionary):
            self._encode_dict(value.entries.items())
        else:
            raise UnsupportedKindError(type(value).__name__)


    def _encode_int(self, value: int):
        if not INT64_MIN <= value <= UINT64_MAX:
            raise IntegerOverflowError(f'Integer {value} does not fit in 64 bits.')
        self.buffer += f'i{value}e'.encode()


    def _encode_bytes(self, data):
        self.buffer += f'{len(data)}:'.encode()
        self.buffer += data


    def _encode_list(self, items):
        self.buffer += b'l'
        for item in items:
            self._encode(item)
        self.buffer += b'e'


    def _encode_dict(self, items):
        entries: dict[bytes, Any] = {}
        for key, value in items:
            if isinstance(key, str):
                raw = key.encode()
            elif isinstance(key, (bytes, bytearray, memoryview)):
                raw = bytes(key)
            else:
                raise KeyTypeError(f'Dict key should be a string, got {type(key).__name__}.')

            if raw in entries:
                raise KeyTypeError(f'Duplicate dict key {raw!r}.')
            entries[raw] = value

        self.buffer += b'd'
        for key in sorted(entries):
            self._encode_bytes(key)
            self._encode(entries[key])
        self.buffer += b'e'


    def _encode_record(self, record: Any):
        profile = self.profiles.profile_for(type(record))
        self.buffer += b'd'
        for descriptor in profile.ordered:
            value = getattr(record, descriptor.slot)
            if descriptor.omit_empty and is_zero(value):
                continue
            self._encode_bytes(descriptor.key)
            self._encode(value)
        self.buffer += b'e'
