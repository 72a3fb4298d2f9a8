from typing import Any, Optional
from benmarshal.tag import tag, parse_tag
from benmarshal.encoder import Encoder, is_zero
from benmarshal.decoder import Decoder
from benmarshal.profile import ProfileCache, TypeProfile, FieldDescriptor, build_profile, profiles
from benmarshal.value import Value, Integer, ByteString, List, Dictionary
from benmarshal.errors import (
    BencodeError,
    DecodeError,
    EncodeError,
    ProfileError,
    UnexpectedEofError,
    BencodeSyntaxError,
    IntegerOverflowError,
    MinusZeroError,
    NegativeLengthError,
    NestingDepthError,
    TypeMismatchError,
    UnsupportedKindError,
    KeyTypeError,
    DuplicateFieldNameError,
    TagSyntaxError,
)


def marshal(value: Any, profiles: Optional[ProfileCache] = None) -> bytes:
    return Encoder(profiles).encode(value)


def unmarshal(
    data: bytes,
    target: Any = Value,
    profiles: Optional[ProfileCache] = None,
    zero_copy: bool = False
) -> Any:
    return Decoder(data, profiles, zero_copy).decode(target)
