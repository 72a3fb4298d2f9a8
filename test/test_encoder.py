import unittest
from dataclasses import dataclass, field
from typing import Any
from benmarshal import marshal, is_zero, tag
from benmarshal import Integer, ByteString, List, Dictionary
from benmarshal import EncodeError, IntegerOverflowError, KeyTypeError, NestingDepthError, UnsupportedKindError


class TestBencode(unittest.TestCase):
    def test_string(self):
        self.assertEqual(marshal(b'omar'), b'4:omar')

    def test_text(self):
        self.assertEqual(marshal('abc'), b'3:abc')

    def test_text_utf8(self):
        self.assertEqual(marshal('é'), b'2:\xc3\xa9')

    def test_empty_string(self):
        self.assertEqual(marshal(b''), b'0:')
        self.assertEqual(marshal(''), b'0:')

    def test_digits_string(self):
        self.assertEqual(marshal('3242434te'), b'9:3242434te')

    def test_bytes_like(self):
        self.assertEqual(marshal(bytearray(b'ab')), b'2:ab')
        self.assertEqual(marshal(memoryview(b'abc')[1:]), b'2:bc')

    def test_int(self):
        self.assertEqual(marshal(12345), b'i12345e')

    def test_int_negative(self):
        self.assertEqual(marshal(-12345), b'i-12345e')

    def test_int_zero(self):
        self.assertEqual(marshal(0), b'i0e')
        self.assertEqual(marshal(-0), b'i0e')

    def test_int_bounds(self):
        self.assertEqual(marshal(-2 ** 63), b'i-9223372036854775808e')
        self.assertEqual(marshal(2 ** 64 - 1), b'i18446744073709551615e')

    def test_int_overflow(self):
        self.assertRaises(IntegerOverflowError, lambda: marshal(2 ** 64))
        self.assertRaises(IntegerOverflowError, lambda: marshal(-2 ** 63 - 1))
        self.assertRaises(OverflowError, lambda: marshal([2 ** 70]))

    def test_bool(self):
        self.assertEqual(marshal(True), b'i1e')
        self.assertEqual(marshal(False), b'i0e')

    def test_list(self):
        self.assertEqual(marshal([1, 2, 3]), b'li1ei2ei3ee')

    def test_list_empty(self):
        self.assertEqual(marshal([]), b'le')

    def test_tuple(self):
        self.assertEqual(marshal((1, 3, 5)), b'li1ei3ei5ee')

    def test_list_of_strings(self):
        self.assertEqual(marshal(['aa', 'b', 'ccc']), b'l2:aa1:b3:ccce')

    def test_list_multiple_types(self):
        self.assertEqual(marshal([1, b'a', [2]]), b'li1e1:ali2eee')
        self.assertEqual(marshal(['aa', 'b', 33, -23, 'XX']), b'l2:aa1:bi33ei-23e2:XXe')

    def test_dict(self):
        self.assertEqual(marshal({'a': b'omar'}), b'd1:a4:omare')

    def test_dict_empty(self):
        self.assertEqual(marshal({}), b'de')

    def test_dict_multiple_types(self):
        self.assertEqual(marshal({'a': 1, 'b': [1, {'c': 0}]}), b'd1:ai1e1:bli1ed1:ci0eeee')

    def test_dict_sorted(self):
        self.assertEqual(marshal({'aa': 43, '': 0}), b'd0:i0e2:aai43ee')
        self.assertEqual(marshal({'aa': 43, 'bbbfe': -544, '': 0}), b'd0:i0e2:aai43e5:bbbfei-544ee')
        self.assertEqual(
            marshal({'e': '5', 'c': 3, 'a': '1', 'd': 4, 'b': '2'}),
            b'd1:a1:11:b1:21:ci3e1:di4e1:e1:5e'
        )

    def test_dict_sorted_by_bytes(self):
        self.assertEqual(marshal({'a': 1, 'Z': 2}), b'd1:Zi2e1:ai1ee')
        self.assertEqual(marshal({b'\xff': 1, b'a': 2}), b'd1:ai2e1:\xffi1ee')

    def test_dict_bytes_keys(self):
        self.assertEqual(marshal({b'cow': b'moo'}), b'd3:cow3:mooe')

    def test_dict_without_str_key(self):
        self.assertRaises(KeyTypeError, lambda: marshal({1: 2}))
        self.assertRaises(TypeError, lambda: marshal({'a': {(1, 2): 3}}))

    def test_dict_duplicate_key(self):
        self.assertRaises(KeyTypeError, lambda: marshal({'a': 1, b'a': 2}))

    def test_none(self):
        self.assertRaises(UnsupportedKindError, lambda: marshal(None))
        self.assertRaises(UnsupportedKindError, lambda: marshal([1, None]))

    def test_unsupported(self):
        with self.assertRaises(UnsupportedKindError) as cm:
            marshal(1.5)
        self.assertEqual(cm.exception.kind, 'float')
        self.assertIn('float', str(cm.exception))
        self.assertRaises(UnsupportedKindError, lambda: marshal({1, 2}))
        self.assertRaises(UnsupportedKindError, lambda: marshal({'f': len}))

    def test_deep_nesting(self):
        value = []
        for _ in range(5000):
            value = [value]
        with self.assertRaises(NestingDepthError) as cm:
            marshal(value)
        self.assertIsInstance(cm.exception, EncodeError)
        self.assertEqual(marshal([[[]]]), b'llleee')

    def test_errors_are_value_errors(self):
        self.assertRaises(ValueError, lambda: marshal(object()))


class TestBencodeValue(unittest.TestCase):
    def test_scalars(self):
        self.assertEqual(marshal(Integer(-7)), b'i-7e')
        self.assertEqual(marshal(ByteString(b'spam')), b'4:spam')

    def test_nested(self):
        value = Dictionary({
            b'b': Integer(1),
            b'a': List([ByteString(b'x'), Integer(2)]),
        })
        self.assertEqual(marshal(value), b'd1:al1:xi2ee1:bi1ee')

    def test_mixed_with_python_values(self):
        self.assertEqual(marshal([Integer(1), 2, {'k': ByteString(b'v')}]), b'li1ei2ed1:k1:vee')


@dataclass
class Flags:
    count: int = 0
    name: str = ''
    extra: Any = field(default=None, metadata=tag('extra,omitempty'))


class TestIsZero(unittest.TestCase):
    def test_scalars(self):
        for value in [None, False, 0, '', b'', [], (), {}]:
            self.assertTrue(is_zero(value), value)
        for value in [True, 1, -1, 'a', b'a', [0], (0,), {'a': 0}]:
            self.assertFalse(is_zero(value), value)

    def test_values(self):
        self.assertTrue(is_zero(Integer(0)))
        self.assertTrue(is_zero(ByteString(b'')))
        self.assertTrue(is_zero(List()))
        self.assertTrue(is_zero(Dictionary()))
        self.assertFalse(is_zero(Integer(3)))

    def test_record(self):
        self.assertTrue(is_zero(Flags()))
        self.assertFalse(is_zero(Flags(count=1)))
        self.assertFalse(is_zero(Flags(extra=[1])))

    def test_record_omitempty_none(self):
        self.assertEqual(marshal(Flags(1, 'x')), b'd5:counti1e4:name1:xe')
        self.assertEqual(marshal(Flags(1, 'x', [2])), b'd5:counti1e5:extrali2ee4:name1:xe')


if __name__ == '__main__':
    unittest.main()
