from typing import Optional


class BencodeError(ValueError):
    pass


class DecodeError(BencodeError):
    def __init__(self, message: str, offset: Optional[int] = None):
        if offset is not None:
            message = f'{message} (at offset {offset})'
        super().__init__(message)
        self.offset = offset


class UnexpectedEofError(DecodeError):
    pass


class BencodeSyntaxError(DecodeError):
    pass


class MinusZeroError(DecodeError):
    pass


class NegativeLengthError(DecodeError):
    pass


class TypeMismatchError(DecodeError, TypeError):
    def __init__(self, wire_kind: str, target: str, offset: Optional[int] = None):
        super().__init__(f'Cannot decode {wire_kind} into {target}', offset)
        self.wire_kind = wire_kind
        self.target = target


class EncodeError(BencodeError):
    pass


class UnsupportedKindError(EncodeError, TypeError):
    def __init__(self, kind: str, message: Optional[str] = None):
        super().__init__(message or f'Type {kind} not supported.')
        self.kind = kind


class KeyTypeError(EncodeError, TypeError):
    pass


class IntegerOverflowError(DecodeError, EncodeError, OverflowError):
    pass


class NestingDepthError(DecodeError, EncodeError):
    pass


class ProfileError(BencodeError):
    pass


class DuplicateFieldNameError(ProfileError):
    def __init__(self, record: str, name: str, first: str, second: str):
        super().__init__(
            f'{record}: fields "{first}" and "{second}" both map to key "{name}"'
        )
        self.record = record
        self.name = name
        self.fields = (first, second)


class TagSyntaxError(ProfileError):
    pass
