import inspect
import dataclasses
from types import UnionType
from collections.abc import Mapping, Sequence
from typing import Annotated, Any, Optional, Union, get_args, get_origin
from benmarshal.profile import ProfileCache, TypeProfile, profiles as default_profiles
from benmarshal.errors import (
    BencodeSyntaxError,
    IntegerOverflowError,
    MinusZeroError,
    NegativeLengthError,
    NestingDepthError,
    TypeMismatchError,
    UnexpectedEofError,
)
from benmarshal.value import (
    COLON,
    DICT_START,
    DIGITS,
    END,
    INT64_MAX,
    INT64_MIN,
    INTEGER_START,
    LIST_START,
    MINUS,
    ByteString,
    Dictionary,
    Integer,
    List,
    Value,
    kind_of_lead,
)

DYNAMIC = 'dynamic'
BOOL = 'bool'
INT = 'int'
STR = 'str'
BYTES = 'bytes'
SEQUENCE = 'sequence'
MAPPING = 'mapping'
RECORD = 'record'
UNION = 'union'

_ACCEPTS = {
    Integer.kind: {DYNAMIC, BOOL, INT},
    ByteString.kind: {DYNAMIC, STR, BYTES},
    List.kind: {DYNAMIC, SEQUENCE},
    Dictionary.kind: {DYNAMIC, MAPPING, RECORD},
}


def category(target: Any) -> Optional[str]:
    if target is None or target is Any or target is object:
        return DYNAMIC

    origin = get_origin(target)
    if origin is Union or origin is UnionType:
        return UNION
    if origin is Annotated:
        return category(get_args(target)[0])

    cls = origin or target
    if not isinstance(cls, type):
        return None
    if issubclass(cls, Value):
        return DYNAMIC
    if cls is bool:
        return BOOL
    if issubclass(cls, int):
        return INT
    if issubclass(cls, str):
        return STR
    if issubclass(cls, (bytes, bytearray, memoryview)):
        return BYTES
    if issubclass(cls, Sequence):
        return SEQUENCE
    if issubclass(cls, Mapping):
        return MAPPING
    if dataclasses.is_dataclass(cls):
        return RECORD
    return None


def _is_variant(target: Any) -> bool:
    return isinstance(target, type) and issubclass(target, Value) and target is not Value


def type_name(target: Any) -> str:
    if get_origin(target) is None and hasattr(target, '__name__'):
        return target.__name__
    return repr(target)


class Decoder:
    def __init__(self, data: bytes, profiles: Optional[ProfileCache] = None, zero_copy: bool = False):
        self.data = data
        self.view = memoryview(data)
        self.profiles = default_profiles if profiles is None else profiles
        self.zero_copy = zero_copy
        self.index = 0


    def decode(self, target: Any = Value) -> Any:
        """Decode the whole input into `target`.

        `target` is a type hint, or a dataclass instance that gets populated
        in place and returned.
        """
        self.index = 0
        try:
            if dataclasses.is_dataclass(target) and not isinstance(target, type):
                wire_kind = self._wire_kind()
                if wire_kind != Dictionary.kind:
                    raise TypeMismatchError(wire_kind, type(target).__name__, self.index)
                self.index += 1
                result = self._decode_record_fields(type(target), target)
            else:
                result = self._decode(target)
        except RecursionError:
            # typed targets recurse, Value targets do not
            raise NestingDepthError('Value nests too deep for its target type', self.index) from None

        if self.index != len(self.data):
            raise BencodeSyntaxError('Trailing data after value', self.index)
        return result


    def _wire_kind(self) -> str:
        lead = self._peek()
        if lead in DIGITS:
            return ByteString.kind
        if lead in (INTEGER_START, LIST_START, DICT_START):
            return kind_of_lead(lead)
        raise BencodeSyntaxError(f'Unsupported leading byte "{chr(lead)}"', self.index)


    def _decode(self, target: Any) -> Any:
        wire_kind = self._wire_kind()
        target = self._select(target, wire_kind)
        shape = category(target)
        if shape not in _ACCEPTS[wire_kind]:
            raise TypeMismatchError(wire_kind, type_name(target), self.index)
        if _is_variant(target) and target.kind != wire_kind:
            raise TypeMismatchError(wire_kind, type_name(target), self.index)

        if shape == DYNAMIC:
            return self._decode_value()
        if wire_kind == Integer.kind:
            return self._decode_int(target, shape)
        if wire_kind == ByteString.kind:
            return self._decode_string(target, shape)
        if wire_kind == List.kind:
            return self._decode_list(target, shape)
        return self._decode_dict(target, shape)


    def _select(self, target: Any, wire_kind: str) -> Any:
        # Optional[T] and other unions: first member able to hold the wire kind
        origin = get_origin(target)
        if origin is Annotated:
            return self._select(get_args(target)[0], wire_kind)

        if origin is Union or origin is UnionType:
            for member in get_args(target):
                if member is not type(None) and self._accepts(member, wire_kind):
                    return self._select(member, wire_kind)
            raise TypeMismatchError(wire_kind, type_name(target), self.index)

        return target


    def _accepts(self, target: Any, wire_kind: str) -> bool:
        shape = category(target)
        if shape == UNION:
            return any(self._accepts(m, wire_kind) for m in get_args(target))
        if _is_variant(target):
            return target.kind == wire_kind
        return shape in _ACCEPTS[wire_kind]


    def _peek(self) -> int:
        if self.index >= len(self.data):
            raise UnexpectedEofError('Unexpected end of data', self.index)
        return self.data[self.index]


    def _expect(self, expected: int):
        actual = self._peek()
        if actual != expected:
            raise BencodeSyntaxError(f'Expected "{chr(expected)}", got "{chr(actual)}"', self.index)
        self.index += 1


    def _read_integer(self) -> int:
        start = self.index
        negative = self._peek() == MINUS
        if negative:
            self.index += 1

        limit = -INT64_MIN if negative else INT64_MAX
        magnitude = 0
        digits = 0
        while self._peek() in DIGITS:
            magnitude = 10 * magnitude + self.data[self.index] - ord('0')
            if magnitude > limit:
                raise IntegerOverflowError('Integer overflows 64 bits', start)
            self.index += 1
            digits += 1

        if digits == 0:
            raise BencodeSyntaxError(f'Expected digit, got "{chr(self.data[self.index])}"', self.index)
        if negative and magnitude == 0:
            raise MinusZeroError('Minus zero is illegal', start)
        return -magnitude if negative else magnitude


    def _read_bytes(self):
        start = self.index
        length = self._read_integer()
        if length < 0:
            raise NegativeLengthError(f'Negative string length {length}', start)
        self._expect(COLON)
        if len(self.data) - self.index < length:
            raise UnexpectedEofError(
                f'String of length {length} exceeds the {len(self.data) - self.index} bytes left',
                self.index
            )
        chunk = self.view[self.index:self.index + length]
        self.index += length
        return chunk


    def _read_key(self) -> bytes:
        return bytes(self._read_bytes())


    def _decode_int(self, target: Any, shape: str) -> Any:
        self._expect(INTEGER_START)
        value = self._read_integer()
        self._expect(END)

        if shape == BOOL:
            return value != 0
        if shape == DYNAMIC:
            return Integer(value)
        cls = get_origin(target) or target
        return value if cls is int else cls(value)


    def _decode_string(self, target: Any, shape: str) -> Any:
        start = self.index
        chunk = self._read_bytes()

        if shape == DYNAMIC:
            return ByteString(chunk if self.zero_copy else bytes(chunk))
        if shape == STR:
            try:
                return str(chunk, 'utf-8')
            except UnicodeDecodeError:
                raise TypeMismatchError('non UTF-8 byte string', type_name(target), start)

        cls = get_origin(target) or target
        if issubclass(cls, memoryview) or (self.zero_copy and cls is bytes):
            return chunk
        return cls(chunk)


    def _decode_value(self) -> Value:
        # open containers live on an explicit stack, each with the key it goes under
        stack: list[tuple[Value, Optional[bytes]]] = []
        while True:
            parent = stack[-1][0] if stack else None
            if parent is not None and self._peek() == END:
                self.index += 1
                value, key = stack.pop()
            else:
                key = self._read_key() if isinstance(parent, Dictionary) else None
                wire_kind = self._wire_kind()
                if wire_kind == List.kind or wire_kind == Dictionary.kind:
                    self.index += 1
                    stack.append((List() if wire_kind == List.kind else Dictionary(), key))
                    continue
                if wire_kind == Integer.kind:
                    value = self._decode_int(Value, DYNAMIC)
                else:
                    value = self._decode_string(Value, DYNAMIC)

            if not stack:
                return value
            parent = stack[-1][0]
            if isinstance(parent, List):
                parent.items.append(value)
            else:
                parent.entries[key] = value


    def _decode_list(self, target: Any, shape: str) -> Any:
        self._expect(LIST_START)
        cls = get_origin(target) or target
        args = get_args(target)

        items = []
        while self._peek() != END:
            items.append(self._decode(self._element_type(target, args, len(items))))

        if self._is_positional(target, args) and len(items) != len(args):
            raise TypeMismatchError(f'list of {len(items)}', type_name(target), self.index)
        self.index += 1

        if isinstance(cls, type) and issubclass(cls, tuple):
            return tuple(items)
        return items


    def _element_type(self, target: Any, args: tuple, position: int) -> Any:
        if not args:
            return Value
        if not self._is_positional(target, args):
            return args[0]
        if position >= len(args):
            raise TypeMismatchError(f'list longer than {len(args)}', type_name(target), self.index)
        return args[position]


    @staticmethod
    def _is_positional(target: Any, args: tuple) -> bool:
        # tuple[int, str] is positional, tuple[int, ...] and list[int] are not
        if get_origin(target) is not tuple or not args:
            return False
        return not (len(args) == 2 and args[1] is Ellipsis)


    def _decode_dict(self, target: Any, shape: str) -> Any:
        self._expect(DICT_START)

        if shape == RECORD:
            return self._decode_record_fields(get_origin(target) or target)

        key_type, value_type = get_args(target) or (str, Value)
        if category(key_type) not in (STR, BYTES, DYNAMIC):
            raise TypeMismatchError(Dictionary.kind, type_name(target), self.index)

        result = {}
        while self._peek() != END:
            start = self.index
            key = self._read_key()
            if category(key_type) != BYTES:
                try:
                    key = key.decode()
                except UnicodeDecodeError:
                    raise TypeMismatchError('non UTF-8 dict key', type_name(key_type), start)
            result[key] = self._decode(value_type)
        self.index += 1
        return result


    def _decode_record_fields(self, cls: type, instance: Any = None) -> Any:
        profile = self.profiles.profile_for(cls)

        values: dict[str, Any] = {}
        while self._peek() != END:
            key = self._read_key()
            try:
                descriptor = profile.by_name.get(key.decode())
            except UnicodeDecodeError:
                descriptor = None

            if descriptor is None:
                # unknown key, parse and drop
                self._decode(Value)
                continue

            values[descriptor.slot] = self._decode(descriptor.hint)
        self.index += 1

        if instance is None:
            return self._build_record(profile, values)

        for slot, value in values.items():
            setattr(instance, slot, value)
        return instance


    def _build_record(self, profile: TypeProfile, values: dict[str, Any]) -> Any:
        kwargs = {
            descriptor.slot: values[descriptor.slot]
            for descriptor in profile.ordered
            if descriptor.init and descriptor.slot in values
        }
        for slot, hint in profile.required:
            if slot not in kwargs:
                kwargs[slot] = self.zero_value(hint)

        record = profile.cls(**kwargs)
        for slot, value in values.items():
            if slot not in kwargs:
                setattr(record, slot, value)
        return record


    def zero_value(self, target: Any) -> Any:
        shape = category(target)
        if shape in (DYNAMIC, UNION, None):
            if _is_variant(target):
                return target()
            return None

        if shape == RECORD:
            return self._build_record(self.profiles.profile_for(get_origin(target) or target), {})

        cls = get_origin(target) or target
        if inspect.isabstract(cls):
            return {} if shape == MAPPING else []
        if cls is memoryview:
            return memoryview(b'')
        return cls()
